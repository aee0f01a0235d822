"""
Activity log model for task audit trails.

Logs task history entries including:
- Task creation (manual or generated from a recurring template)
- Status changes
- Assignment changes
- Task deletion
- Children detached from a deleted recurring template
"""

from django.db import models
from django.conf import settings


class TaskActivity(models.Model):
    """
    History entry for a task.

    ``user`` is null for entries written by the recurring task scheduler;
    ``user_name``/``user_role`` keep a snapshot so history survives
    user and task deletion.
    """

    SYSTEM_ROLE = 'system'

    class ActionType(models.TextChoices):
        TASK_CREATED = 'task_created', 'Task Created'
        STATUS_CHANGED = 'status_changed', 'Status Changed'
        ASSIGNED = 'assigned', 'Assigned'
        TASK_DELETED = 'task_deleted', 'Task Deleted'
        DETACHED = 'detached', 'Detached from Template'

    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities',
    )
    task_title = models.CharField(max_length=255, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='task_activities',
        help_text='User who performed the action (empty for the scheduler)'
    )
    user_name = models.CharField(max_length=255, default='System')
    user_role = models.CharField(max_length=20, default=SYSTEM_ROLE)
    action_type = models.CharField(
        max_length=20,
        choices=ActionType.choices,
        db_index=True,
    )
    description = models.TextField(
        blank=True,
        help_text='Human-readable description of the change'
    )
    status_from = models.CharField(max_length=25, null=True, blank=True)
    status_to = models.CharField(max_length=25, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'task activity'
        verbose_name_plural = 'task activities'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['task', '-created_at'], name='activity_task_created_idx'),
            models.Index(fields=['action_type', '-created_at'], name='activity_action_created_idx'),
        ]

    def __str__(self):
        return f"{self.task_title or self.task_id} - {self.get_action_type_display()} by {self.user_name}"


def log_task_activity(task, user, action_type, description='',
                      status_from=None, status_to=None):
    """
    Helper function to create activity log entries.

    Args:
        task: Task instance
        user: User who performed the action, or None for the scheduler
        action_type: One of TaskActivity.ActionType choices
        description: Human-readable description / notes
        status_from: Optional previous status
        status_to: Optional new status

    Returns:
        Created TaskActivity instance
    """
    if user is None:
        user_name, user_role = 'System', TaskActivity.SYSTEM_ROLE
    else:
        user_name, user_role = user.get_full_name(), user.role

    return TaskActivity.objects.create(
        task=task,
        task_title=task.title,
        user=user,
        user_name=user_name,
        user_role=user_role,
        action_type=action_type,
        description=description,
        status_from=status_from,
        status_to=status_to,
    )
