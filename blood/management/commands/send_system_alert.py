from django.core.management.base import BaseCommand, CommandError

from blood.services import alerts as alert_service


class Command(BaseCommand):
    help = "Emit a system alert to everyone, or to one recipient with --user"

    def add_arguments(self, parser):
        parser.add_argument("--title", required=True)
        parser.add_argument("--message", required=True)
        parser.add_argument("--user", dest="user_id", help="Recipient user id (omit to broadcast)")
        parser.add_argument("--related", dest="related_id", help="Related record id")

    def handle(self, *args, **options):
        title = (options["title"] or "").strip()
        message = (options["message"] or "").strip()
        if not title or not message:
            raise CommandError("--title and --message must not be blank")

        alert = alert_service.emit_system_alert(
            title,
            message,
            user_id=options.get("user_id"),
            related_id=options.get("related_id"),
        )
        self.stdout.write(self.style.SUCCESS(f"System alert {alert.pk} sent to {alert.user_id or 'everyone'}"))
