"""
Management command to run one recurring task sweep immediately.

Usage:
    python manage.py process_recurring_tasks
"""
from django.core.management.base import BaseCommand, CommandError

from apps.notifications.scheduler import scheduler


class Command(BaseCommand):
    help = 'Create missing child tasks for all recurring templates now'

    def handle(self, *args, **options):
        result = scheduler.trigger_manually()
        if result is None:
            raise CommandError('Recurring task processing failed, see the log for details.')

        for entry in result['results']:
            if entry['status'] == 'success':
                self.stdout.write(f"  • Template #{entry['taskId']}: {entry['message']}")
            else:
                self.stdout.write(
                    self.style.ERROR(f"  ✗ Template #{entry['taskId']}: {entry['error']}")
                )

        self.stdout.write(
            self.style.SUCCESS(
                f"Done! Created {result['processed']} task(s) "
                f"across {result['total']} recurring template(s)."
            )
        )
