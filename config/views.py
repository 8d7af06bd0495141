from django.db import connection
from django.http import JsonResponse
from django.utils import timezone


def health(request):
    """Liveness probe; also reports whether the database answers."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        database = "ok"
    except Exception:
        database = "unavailable"
    return JsonResponse({"status": "ok", "database": database, "time": timezone.now().isoformat()})
