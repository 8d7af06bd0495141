"""
Grant or revoke admin panel access for a user.
Usage: python manage.py set_admin someone@example.com [--revoke]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import Profile

User = get_user_model()


class Command(BaseCommand):
    help = "Set or clear Profile.is_admin for the user with the given email"

    def add_arguments(self, parser):
        parser.add_argument("email", type=str, help="Email of the user")
        parser.add_argument("--revoke", action="store_true", help="Remove admin access instead of granting it")

    def handle(self, *args, **options):
        email = options["email"]
        is_admin = not options["revoke"]

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise CommandError(f"User with email {email} does not exist")

        profile, _ = Profile.objects.get_or_create(user=user, defaults={"email": user.email})
        profile.is_admin = is_admin
        profile.save(update_fields=["is_admin", "updated_at"])

        self.stdout.write(self.style.SUCCESS(f"{email}: is_admin={profile.is_admin}"))
