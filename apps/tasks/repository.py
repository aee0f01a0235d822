"""
Task repository used by the recurring task scheduler.

A thin ORM-backed collaborator. Services accept any object exposing the
same methods, which keeps the scheduling logic independent of storage.
"""

from apps.activity_log.models import log_task_activity

from .models import Task

# Patterns that never generate child tasks. "cancelled" marks children
# detached from a deleted template.
NON_RECURRING_PATTERNS = ['once', 'cancelled']


class TaskRepository:
    """CRUD access to templates, child instances and their history."""

    def get_recurring_templates(self):
        """All active recurring templates (recurring, no parent, pattern != once)."""
        return list(
            Task.objects.filter(is_recurring=True, parent_task__isnull=True)
            .exclude(recurrence_pattern__in=NON_RECURRING_PATTERNS)
            .select_related('created_by')
            .prefetch_related('assignees')
            .order_by('pk')
        )

    def get_child_tasks(self, template_id):
        return list(Task.objects.filter(parent_task_id=template_id).order_by('scheduled_for'))

    def get_tasks_scheduled_between(self, start, end):
        """Tasks with start <= scheduled_for < end."""
        return list(
            Task.objects.filter(scheduled_for__gte=start, scheduled_for__lt=end)
            .prefetch_related('assignees')
            .order_by('scheduled_for')
        )

    def create_task(self, fields, assignees=()):
        task = Task.objects.create(**fields)
        if assignees:
            task.assignees.set(assignees)
        return task

    def update_task(self, task_id, **fields):
        """Update the given fields; returns the number of rows updated."""
        return Task.objects.filter(pk=task_id).update(**fields)

    def delete_task(self, task):
        task.delete()

    def create_task_history(self, task, action_type, description='', user=None,
                            status_from=None, status_to=None):
        return log_task_activity(
            task=task,
            user=user,
            action_type=action_type,
            description=description,
            status_from=status_from,
            status_to=status_to,
        )
