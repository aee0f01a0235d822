"""
Management command to set up the Django-Q2 schedule for recurring tasks.

This command creates the scheduled job that:
- Keeps every recurring template's child task window filled (every 15 minutes)
- Sends the morning notifications for tasks scheduled today (08:00-08:14)

Usage:
    python manage.py setup_schedules
    python manage.py setup_schedules --remove

The command is idempotent - safe to run multiple times.
An existing schedule is left untouched.
"""
from django.conf import settings
from django.core.management.base import BaseCommand

from apps.notifications.scheduler import scheduler


class Command(BaseCommand):
    help = 'Set up (or remove) the Django-Q2 schedule for recurring tasks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--remove',
            action='store_true',
            help='Remove the recurring task schedule instead of creating it',
        )

    def handle(self, *args, **options):
        if options['remove']:
            if scheduler.stop():
                self.stdout.write(self.style.SUCCESS('✓ Removed schedule: Recurring Task Sweep'))
            else:
                self.stdout.write(self.style.WARNING('No recurring task schedule to remove'))
            return

        self.stdout.write('\nSetting up Django-Q2 schedules...\n')

        minutes = settings.RECURRING_TASK_SWEEP_MINUTES
        if scheduler.start():
            self.stdout.write(
                self.style.SUCCESS(f'✓ Created schedule: Recurring Task Sweep (every {minutes} minutes)')
            )
        else:
            self.stdout.write(
                self.style.WARNING('↻ Schedule already exists: Recurring Task Sweep')
            )

        self.stdout.write('')
        self.stdout.write('Schedule Summary:')
        self.stdout.write(f'  • Recurring Task Sweep  → Runs every {minutes} minutes')
        self.stdout.write(
            f'  • Scheduled task notifications → Daily at '
            f'{settings.SCHEDULED_NOTIFICATION_HOUR:02d}:00 ({settings.TIME_ZONE})'
        )
        self.stdout.write('')
        self.stdout.write(
            self.style.NOTICE(
                'Note: Ensure Django-Q cluster is running: python manage.py qcluster'
            )
        )
        self.stdout.write('')
