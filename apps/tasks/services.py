"""
Service layer for tasks app.

All business logic for task operations is centralized here.
This enables reuse from views, admin actions, management commands
and the Django-Q2 scheduler.

Services:
- create_recurring_template: Create a recurring template and its first child tasks
- ensure_child_tasks_exist: Keep the look-ahead window of child tasks filled
- process_recurring_tasks: Sweep over all recurring templates
- delete_recurring_template: Remove a template and its pending child tasks
- change_status: Change task status with workflow validation
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.activity_log.models import TaskActivity, log_task_activity

from .models import Task
from .recurrence import (
    DetailedRecurrence,
    calculate_scheduled_dates,
    is_valid_recurrence_pattern,
)
from .repository import TaskRepository

logger = logging.getLogger(__name__)

# Extra candidate dates requested on top of the window, absorbing dedup
CANDIDATE_MARGIN = 10


# =============================================================================
# Recurring Templates
# =============================================================================

def create_recurring_template(
    title: str,
    created_by,
    recurrence_pattern: str,
    assignees=(),
    description: str = '',
    location: str = '',
    room_number: str = '',
    priority: str = 'normal',
    recurrence_start_date=None,
    week_days=None,
    month_days=None,
    year_dates=None,
    execution_hour=None,
    execution_minute=None,
    repository=None,
    now=None,
):
    """
    Create a recurring task template.

    When the template has assignees and a real cadence, its child task
    window is materialized immediately; failures there are logged and do
    not undo the template.

    Returns:
        Created Task instance (the template)

    Raises:
        ValidationError: If the title, pattern or detailed fields are invalid
    """
    if not title or not title.strip():
        raise ValidationError("Task title is required.")

    if not created_by:
        raise ValidationError("Creator is required.")

    if not is_valid_recurrence_pattern(recurrence_pattern):
        raise ValidationError(f"Invalid recurrence pattern: {recurrence_pattern}")

    if priority not in Task.Priority.values:
        priority = Task.Priority.NORMAL

    _validate_detailed_recurrence(
        week_days, month_days, year_dates, execution_hour, execution_minute
    )

    repository = repository or TaskRepository()
    now = now or timezone.now()
    is_recurring = recurrence_pattern != 'once'
    assignees = list(assignees)

    with transaction.atomic():
        template = repository.create_task({
            'title': title.strip(),
            'description': description.strip() if description else '',
            'location': location,
            'room_number': room_number,
            'priority': priority,
            'status': Task.Status.ASSIGNED_TO_RADNIK if assignees else Task.Status.NEW,
            'created_by': created_by,
            'is_recurring': is_recurring,
            'recurrence_pattern': recurrence_pattern,
            'recurrence_start_date': recurrence_start_date,
            'next_occurrence': (recurrence_start_date or now) if is_recurring else None,
            'recurrence_week_days': list(week_days or []),
            'recurrence_month_days': list(month_days or []),
            'recurrence_year_dates': list(year_dates or []),
            'execution_hour': execution_hour,
            'execution_minute': execution_minute,
        }, assignees=assignees)

        repository.create_task_history(
            task=template,
            user=created_by,
            action_type=TaskActivity.ActionType.TASK_CREATED,
            description=description or f'Recurring task created: "{template.title}"',
            status_to=template.status,
        )

    if is_recurring and assignees:
        try:
            ensure_child_tasks_exist(template, repository=repository, now=now)
        except Exception:
            logger.exception('Error creating child tasks for template %s', template.pk)

    return template


def _in_range(value, low, high):
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def _validate_detailed_recurrence(week_days, month_days, year_dates,
                                  execution_hour, execution_minute):
    """Reject non-integer or out-of-range detailed recurrence values."""
    if execution_hour is not None and not _in_range(execution_hour, 0, 23):
        raise ValidationError("Execution hour must be between 0 and 23.")

    if execution_minute is not None and not _in_range(execution_minute, 0, 59):
        raise ValidationError("Execution minute must be between 0 and 59.")

    for day in week_days or []:
        if not _in_range(day, 0, 6):
            raise ValidationError(f"Invalid week day: {day} (expected 0-6, 0 = Sunday).")

    for day in month_days or []:
        if not _in_range(day, 1, 31):
            raise ValidationError(f"Invalid day of month: {day}.")

    for entry in year_dates or []:
        if not isinstance(entry, dict):
            raise ValidationError(f"Invalid yearly date: {entry}.")
        month, day = entry.get('month'), entry.get('day')
        if not _in_range(month, 1, 12) or not _in_range(day, 1, 31):
            raise ValidationError(f"Invalid yearly date: {entry}.")


def _child_task_fields(template, scheduled_for):
    """Business fields copied from the template onto a new child task."""
    return {
        'title': template.title,
        'description': template.description,
        'location': template.location,
        'room_number': template.room_number,
        'priority': template.priority,
        'status': Task.Status.ASSIGNED_TO_RADNIK,
        'created_by': template.created_by,
        'parent_task': template,
        'is_recurring': False,
        'recurrence_pattern': template.recurrence_pattern,
        'scheduled_for': scheduled_for,
    }


def ensure_child_tasks_exist(template, repository=None, now=None, window_size=None):
    """
    Make sure a recurring template has enough active child tasks ahead.

    Creates child tasks up to ``window_size`` active (non-terminal) ones,
    skipping calendar dates that already have an active child. The
    template's next_occurrence is refreshed afterwards as a display hint.

    Args:
        template: Recurring template Task
        repository: Task repository (defaults to the ORM repository)
        now: Reference "now" (defaults to the current time)
        window_size: Active children to maintain (defaults to settings)

    Returns:
        Number of child tasks created

    Raises:
        Any error fetching existing children or computing dates; a failure
        creating a single child is logged and skipped instead.
    """
    repository = repository or TaskRepository()
    now = now or timezone.now()
    window_size = window_size or settings.RECURRING_TASK_WINDOW_SIZE

    children = repository.get_child_tasks(template.pk)
    active_children = [child for child in children if not child.is_terminal]
    active_count = len(active_children)

    if active_count >= window_size:
        logger.debug('Template %s already has %s active child tasks', template.pk, active_count)
        return 0

    needed_count = window_size - active_count
    details = DetailedRecurrence.from_task(template)

    start_date = now
    if template.recurrence_start_date and template.recurrence_start_date > now:
        start_date = template.recurrence_start_date

    candidates = calculate_scheduled_dates(
        start_date,
        template.recurrence_pattern,
        details,
        max_count=needed_count + active_count + CANDIDATE_MARGIN,
        now=now,
    )

    # Dedup by calendar day, not exact timestamp
    taken_dates = {
        timezone.localdate(child.scheduled_for)
        for child in active_children
        if child.scheduled_for
    }
    new_dates = []
    for candidate in candidates:
        candidate_date = timezone.localdate(candidate)
        if candidate_date in taken_dates:
            continue
        taken_dates.add(candidate_date)
        new_dates.append(candidate)
        if len(new_dates) >= needed_count:
            break

    if new_dates:
        logger.info('Creating %s child tasks for template %s', len(new_dates), template.pk)

    assignees = list(template.assignees.all())
    created_count = 0

    for scheduled_for in new_dates:
        try:
            with transaction.atomic():
                child = repository.create_task(
                    _child_task_fields(template, scheduled_for),
                    assignees=assignees,
                )
                repository.create_task_history(
                    task=child,
                    action_type=TaskActivity.ActionType.TASK_CREATED,
                    description=f'Auto-generated from recurring template #{template.pk}',
                    status_to=Task.Status.ASSIGNED_TO_RADNIK,
                )
        except Exception:
            logger.exception(
                'Failed to create child task of template %s for %s',
                template.pk, scheduled_for.isoformat()
            )
            continue

        created_count += 1
        logger.info(
            'Created child task %s scheduled for %s', child.pk, scheduled_for.isoformat()
        )

    # Display hint: nearest upcoming occurrence relative to now
    upcoming = calculate_scheduled_dates(
        start_date, template.recurrence_pattern, details, max_count=1, now=now
    )
    if upcoming:
        try:
            repository.update_task(template.pk, next_occurrence=upcoming[0])
        except Exception:
            logger.exception('Failed to refresh next occurrence of template %s', template.pk)

    return created_count


def process_recurring_tasks(repository=None, now=None):
    """
    Ensure every recurring template has its child task window filled.

    Errors are recorded per template and never stop the sweep.

    Returns:
        dict: {'processed': created child count, 'total': templates examined,
               'results': [{'taskId', 'status', 'message' | 'error'}]}
    """
    repository = repository or TaskRepository()
    logger.info('Processing recurring tasks...')

    templates = repository.get_recurring_templates()
    if not templates:
        logger.info('No recurring tasks found')
        return {'processed': 0, 'total': 0, 'results': []}

    logger.info('Found %s recurring tasks', len(templates))

    processed_count = 0
    results = []

    for template in templates:
        try:
            created_count = ensure_child_tasks_exist(template, repository=repository, now=now)
        except Exception as exc:
            logger.exception('Error processing recurring task %s', template.pk)
            results.append({
                'taskId': template.pk,
                'status': 'error',
                'error': str(exc) or exc.__class__.__name__,
            })
            continue

        processed_count += created_count
        results.append({
            'taskId': template.pk,
            'status': 'success',
            'message': f'Created {created_count} child tasks',
        })

    logger.info('Finished processing. Created %s new tasks', processed_count)

    return {
        'processed': processed_count,
        'total': len(templates),
        'results': results,
    }


def delete_recurring_template(template, user, repository=None):
    """
    Delete a recurring template.

    Active child tasks are deleted (with a history entry each). Completed
    and cancelled children are detached and marked with the "cancelled"
    pattern so they stay visible in history without being swept.

    Returns:
        Number of deleted child tasks
    """
    repository = repository or TaskRepository()
    deleted_count = 0

    with transaction.atomic():
        children = repository.get_child_tasks(template.pk)

        for child in children:
            if child.is_terminal:
                repository.update_task(
                    child.pk,
                    parent_task=None,
                    is_recurring=True,
                    recurrence_pattern='cancelled',
                )
                repository.create_task_history(
                    task=child,
                    user=user,
                    action_type=TaskActivity.ActionType.DETACHED,
                    description=f'Recurring template #{template.pk} deleted by {user.get_full_name()}',
                )
                continue

            repository.create_task_history(
                task=child,
                user=user,
                action_type=TaskActivity.ActionType.TASK_DELETED,
                description=(
                    f'Child task auto-deleted due to recurring template deletion '
                    f'by {user.get_full_name()}'
                ),
                status_from=child.status,
                status_to='deleted',
            )
            repository.delete_task(child)
            deleted_count += 1

        repository.create_task_history(
            task=template,
            user=user,
            action_type=TaskActivity.ActionType.TASK_DELETED,
            description=(
                f'Task deleted by {user.get_full_name()} '
                f'(recurring template, {deleted_count} future tasks deleted)'
            ),
            status_from=template.status,
            status_to='deleted',
        )
        repository.delete_task(template)

    logger.info('Deleted recurring template %s and %s child tasks', template.pk, deleted_count)
    return deleted_count


# =============================================================================
# Status Workflow
# =============================================================================

def change_status(task, user, new_status, notes=None):
    """
    Change task status with workflow validation.

    Child tasks of a recurring template move independently of it.

    Args:
        task: Task instance
        user: User changing the status
        new_status: Target status
        notes: Optional worker report / reason

    Returns:
        Updated Task instance

    Raises:
        ValidationError: If transition is invalid
    """
    old_status = task.status

    if not task.can_transition_to(new_status):
        raise ValidationError(
            f"Cannot change status from '{task.get_status_display()}' to "
            f"'{dict(Task.Status.choices).get(new_status, new_status)}'."
        )

    with transaction.atomic():
        task.status = new_status

        if new_status == Task.Status.COMPLETED:
            task.completed_at = timezone.now()
            task.completed_by = user
            if notes:
                task.worker_report = notes
        elif new_status == Task.Status.CANCELLED:
            task.cancelled_at = timezone.now()
            task.cancelled_by = user

        task.save()

        description = (
            f'Status changed from {dict(Task.Status.choices).get(old_status)} '
            f'to {dict(Task.Status.choices).get(new_status)}'
        )
        if notes:
            description += f': {notes}'

        log_task_activity(
            task=task,
            user=user,
            action_type=TaskActivity.ActionType.STATUS_CHANGED,
            description=description,
            status_from=old_status,
            status_to=new_status,
        )

    return task
