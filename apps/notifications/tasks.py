"""
Scheduled notification jobs for notifications app.

Once a day, inside the morning notification window, every technician
assigned to a recurring task instance scheduled for that day is
notified. The check runs after each recurring task sweep.
"""

import logging
from datetime import datetime, time, timedelta

from django.conf import settings
from django.utils import timezone

from apps.tasks.models import Task
from apps.tasks.repository import TaskRepository

from .services import notify_task_scheduled

logger = logging.getLogger(__name__)


class DailyNotificationState:
    """Remembers the local date on which the daily notifications went out."""

    def __init__(self):
        self.last_notified_date = None

    def has_notified(self, day):
        return self.last_notified_date == day

    def mark_notified(self, day):
        self.last_notified_date = day

    def reset(self):
        self.last_notified_date = None


def is_notification_time(now=None):
    """True while the local clock is inside the morning notification window."""
    local_now = timezone.localtime(now or timezone.now())
    return (
        local_now.hour == settings.SCHEDULED_NOTIFICATION_HOUR
        and local_now.minute < settings.SCHEDULED_NOTIFICATION_WINDOW_MINUTES
    )


def _local_day_bounds(now):
    today = timezone.localdate(now)
    start = timezone.make_aware(datetime.combine(today, time.min))
    end = timezone.make_aware(datetime.combine(today + timedelta(days=1), time.min))
    return today, start, end


def get_tasks_scheduled_for_today(repository=None, now=None):
    """
    Child tasks due today that still need the morning notification.

    Lookup failures are logged and yield an empty list.
    """
    repository = repository or TaskRepository()
    _, start, end = _local_day_bounds(now or timezone.now())

    try:
        tasks = repository.get_tasks_scheduled_between(start, end)
    except Exception:
        logger.exception('Error getting tasks scheduled for today')
        return []

    return [
        task for task in tasks
        if task.status == Task.Status.ASSIGNED_TO_RADNIK
        and task.parent_task_id
        and not task.scheduled_notification_sent
        and task.assignees.exists()
    ]


def send_scheduled_notifications(state, repository=None, now=None):
    """
    Notify the assignees of every task scheduled for today.

    Args:
        state: DailyNotificationState guarding against a second run today
        repository: Task repository (defaults to the ORM repository)
        now: Reference "now" (defaults to the current time)

    Returns:
        dict: {'sent': users notified, 'failed': tasks that failed}
    """
    repository = repository or TaskRepository()
    now = now or timezone.now()
    today = timezone.localdate(now)

    if state.has_notified(today):
        logger.info('Already sent scheduled notifications today, skipping')
        return {'sent': 0, 'failed': 0}

    tasks = get_tasks_scheduled_for_today(repository=repository, now=now)
    if not tasks:
        logger.info('No tasks scheduled for today')
        state.mark_notified(today)
        return {'sent': 0, 'failed': 0}

    logger.info('Found %s tasks scheduled for today', len(tasks))

    sent = 0
    failed = 0
    for task in tasks:
        try:
            sent += notify_task_scheduled(task)
            repository.update_task(task.pk, scheduled_notification_sent=True)
        except Exception:
            logger.exception('Error sending scheduled notification for task %s', task.pk)
            failed += 1

    state.mark_notified(today)
    logger.info('Scheduled notifications completed: %s sent, %s failed', sent, failed)

    return {'sent': sent, 'failed': failed}


def run_scheduled_notification_check(state, repository=None, now=None):
    """
    Send today's scheduled notifications if it is time and not done yet.

    Returns:
        The send result, or None when nothing was due.
    """
    now = now or timezone.now()

    if is_notification_time(now) and not state.has_notified(timezone.localdate(now)):
        logger.info('Notification window open, sending scheduled notifications')
        return send_scheduled_notifications(state, repository=repository, now=now)

    return None
