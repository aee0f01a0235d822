"""
Recurring task scheduler.

A Django-Q2 schedule calls ``run_recurring_tasks_job`` every
RECURRING_TASK_SWEEP_MINUTES minutes. Each run sweeps the recurring
templates and then checks whether the morning notifications are due.

Usage:
    python manage.py setup_schedules            # start
    python manage.py setup_schedules --remove   # stop
    python manage.py qcluster                   # worker that runs the job
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from django_q.models import Schedule

from apps.tasks.services import process_recurring_tasks

from .tasks import DailyNotificationState, run_scheduled_notification_check

logger = logging.getLogger(__name__)

SCHEDULE_NAME = 'Recurring Task Sweep'
JOB_FUNC = 'apps.notifications.scheduler.run_recurring_tasks_job'


class RecurringTaskScheduler:
    """Drives the periodic sweep and owns the daily notification state."""

    def __init__(self, notification_state=None):
        self.notification_state = notification_state or DailyNotificationState()

    def is_running(self):
        return Schedule.objects.filter(name=SCHEDULE_NAME).exists()

    def start(self, now=None):
        """
        Install the repeating schedule.

        The first run happens RECURRING_TASK_FIRST_RUN_DELAY_SECONDS after
        start. Starting twice leaves the existing schedule untouched.

        Returns:
            True if the schedule was created, False if it already existed
        """
        if self.is_running():
            logger.info('Recurring task scheduler already running')
            return False

        now = now or timezone.now()
        minutes = settings.RECURRING_TASK_SWEEP_MINUTES

        Schedule.objects.create(
            name=SCHEDULE_NAME,
            func=JOB_FUNC,
            schedule_type=Schedule.MINUTES,
            minutes=minutes,
            repeats=-1,  # Run forever
            next_run=now + timedelta(seconds=settings.RECURRING_TASK_FIRST_RUN_DELAY_SECONDS),
        )

        logger.info('Recurring task scheduler started, running every %s minutes', minutes)
        return True

    def stop(self):
        """
        Remove the schedule. A run already in progress finishes normally.

        Returns:
            True if a schedule was removed
        """
        deleted, _ = Schedule.objects.filter(name=SCHEDULE_NAME).delete()
        if deleted:
            logger.info('Recurring task scheduler stopped')
        return bool(deleted)

    def run_job(self, now=None):
        """
        One scheduler tick: sweep, then the notification check.

        Never raises; a failure is logged and the next tick runs as usual.

        Returns:
            The sweep result, or None if the run failed
        """
        try:
            logger.info('Triggering recurring tasks processing...')
            result = process_recurring_tasks(now=now)

            if result['processed'] > 0:
                logger.info('Created %s new task(s)', result['processed'])
            else:
                logger.info('No tasks to process')

            run_scheduled_notification_check(self.notification_state, now=now)
        except Exception:
            logger.exception('Error processing recurring tasks')
            return None

        return result

    def trigger_manually(self, now=None):
        logger.info('Manual trigger requested')
        return self.run_job(now=now)


scheduler = RecurringTaskScheduler()


def run_recurring_tasks_job():
    """Entry point called by the Django-Q2 cluster."""
    return scheduler.run_job()
