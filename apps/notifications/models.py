"""
In-app notifications shown in the notification center.
"""

from django.db import models
from django.conf import settings


class Notification(models.Model):
    """A notification addressed to a single user, optionally about a task."""

    class NotificationType(models.TextChoices):
        TASK_CREATED = 'task_created', 'Task Created'
        TASK_ASSIGNED = 'task_assigned', 'Task Assigned'
        TASK_SCHEDULED = 'task_scheduled', 'Task Scheduled Today'
        TASK_COMPLETED = 'task_completed', 'Task Completed'
        INFO = 'info', 'Info'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(
        max_length=20,
        choices=NotificationType.choices,
        default=NotificationType.INFO,
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'notification'
        verbose_name_plural = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.title} → {self.user}"
