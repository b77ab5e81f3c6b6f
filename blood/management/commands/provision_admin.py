import logging
import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from blood.models import AccountProfile

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Provision an admin account from ADMIN_USERNAME / ADMIN_PASSWORD / ADMIN_EMAIL. "
        "Admins may moderate donors and edit or delete any blood request."
    )

    def add_arguments(self, parser):
        parser.add_argument("--phone", default=os.getenv("ADMIN_PHONE", ""), help="Account phone stored on the profile")

    def handle(self, *args, **options):
        email = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
        # Accounts log in by email, so the email doubles as the username.
        username = (os.getenv("ADMIN_USERNAME") or email).strip()
        password = os.getenv("ADMIN_PASSWORD") or ""
        reset_password = (os.getenv("ADMIN_RESET_PASSWORD") or "false").lower() == "true"

        if not username or not password:
            self.stdout.write("Skipping admin provisioning (ADMIN_USERNAME/ADMIN_PASSWORD not set).")
            return

        User = get_user_model()

        with transaction.atomic():
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "is_staff": True, "is_superuser": True},
            )
            if created:
                user.set_password(password)
                user.save()
            else:
                changed = []
                if email and user.email != email:
                    user.email = email
                    changed.append("email")
                if not (user.is_staff and user.is_superuser):
                    user.is_staff = user.is_superuser = True
                    changed.extend(["is_staff", "is_superuser"])
                if reset_password:
                    user.set_password(password)
                    changed.append("password")
                if changed:
                    user.save(update_fields=changed)

            profile, _ = AccountProfile.objects.get_or_create(user=user)
            if options["phone"] and profile.phone != options["phone"]:
                profile.phone = options["phone"]
                profile.save(update_fields=["phone"])

        if created:
            logger.info("Created admin account %s", username)
            self.stdout.write(f"Created admin user: {username}")
        elif changed:
            logger.info("Updated admin account %s (%s)", username, ", ".join(changed))
            self.stdout.write(f"Updated admin user: {username}")
        else:
            self.stdout.write(f"Admin user already present: {username}")
