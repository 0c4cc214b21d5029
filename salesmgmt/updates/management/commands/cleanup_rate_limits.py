from django.core.management.base import BaseCommand

from salesmgmt.updates.ratelimit import cleanup_expired_limits
from salesmgmt.updates.services import deactivate_stale_clients


class Command(BaseCommand):
    help = 'Clears expired rate limit blocks, resets stale windows and removes inactive trackers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--stale-clients',
            action='store_true',
            help='Also mark connected clients without a recent ping as inactive',
        )
        parser.add_argument(
            '--stale-minutes',
            type=int,
            default=30,
            help='Minutes without a ping before a client is stale (default: 30)',
        )

    def handle(self, *args, **options):
        expired_blocks, reset_windows, deleted = cleanup_expired_limits()
        self.stdout.write(f"Expired blocks cleared: {expired_blocks}")
        self.stdout.write(f"Windows reset: {reset_windows}")
        self.stdout.write(f"Inactive trackers deleted: {deleted}")

        if options['stale_clients']:
            stale = deactivate_stale_clients(options['stale_minutes'])
            self.stdout.write(f"Stale clients deactivated: {stale}")

        self.stdout.write(self.style.SUCCESS("Rate limit cleanup complete"))
