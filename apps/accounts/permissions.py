from rest_framework import permissions

from .models import Profile


def is_platform_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return Profile.objects.filter(user=user, is_admin=True).exists()


class IsPlatformAdmin(permissions.BasePermission):
    """Allows access only to users whose profile carries ``is_admin``."""

    message = "Unauthorized: Admin access required"

    def has_permission(self, request, view):
        return is_platform_admin(request.user)
