"""
Service layer for notifications app.

Delivery of notifications to staff: an in-app Notification row plus an
email through Django's mail framework.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import Notification

logger = logging.getLogger(__name__)


def send_notification_email(to_email, subject, message, from_email=None):
    """
    Send a plain-text notification email.

    Returns:
        True if the message was handed to the mail backend, False otherwise.
        Failures are logged, never raised.
    """
    if not to_email:
        return False

    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to_email],
            fail_silently=False,
        )
    except Exception:
        logger.exception('Failed to send notification email to %s', to_email)
        return False

    return True


def notify_user(user, title, message, task=None,
                notification_type=Notification.NotificationType.INFO):
    """
    Notify a single user.

    The in-app notification is always stored; the email copy is best-effort.

    Returns:
        Created Notification instance
    """
    notification = Notification.objects.create(
        user=user,
        task=task,
        title=title,
        message=message,
        notification_type=notification_type,
    )

    send_notification_email(user.email, title, message)

    return notification


def notify_task_scheduled(task):
    """
    Tell every assignee that a recurring task is due today.

    Returns:
        Number of users notified
    """
    scheduled_time = ''
    if task.scheduled_for:
        scheduled_time = timezone.localtime(task.scheduled_for).strftime('%H:%M')

    title = f'Scheduled task today: {task.title}'
    message = f'"{task.title}" is scheduled for today'
    if scheduled_time:
        message += f' at {scheduled_time}'
    if task.location:
        message += f' ({task.location})'
    message += '.'

    notified = 0
    for user in task.assignees.all():
        notify_user(
            user,
            title,
            message,
            task=task,
            notification_type=Notification.NotificationType.TASK_SCHEDULED,
        )
        notified += 1

    return notified
