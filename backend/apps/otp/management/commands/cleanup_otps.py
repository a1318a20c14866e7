"""
Management command to clean up verified and long-expired OTP records.

Run periodically via cron or scheduled task to keep the OTP table small.
Example: ./manage.py cleanup_otps --hours 24
"""

from django.core.management.base import BaseCommand

from apps.otp.services import cleanup_otps, stale_otps


class Command(BaseCommand):
    help = "Delete verified and expired OTP records older than the given number of hours"

    def add_arguments(self, parser):
        parser.add_argument(
            "--hours",
            type=int,
            default=24,
            help="Delete records older than this many hours (default: 24)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting",
        )

    def handle(self, *args, **options):
        hours = options["hours"]

        if options["dry_run"]:
            count = stale_otps(hours).count()
            self.stdout.write(self.style.WARNING(f"[DRY RUN] Would delete {count} OTP records"))
            return

        deleted = cleanup_otps(hours)
        self.stdout.write(self.style.SUCCESS(f"Successfully deleted {deleted} OTP records"))
