"""
Views for tasks app.

JSON endpoints for recurring tasks:
- Recurring template list / create / delete
- Child tasks of a template
- Manual sweep trigger (admin only)
- Status changes
"""

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.http import HttpResponseForbidden, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from apps.notifications.scheduler import scheduler

from .filters import ChildTaskFilter, RecurringTemplateFilter
from .forms import RecurringTemplateForm, TaskStatusForm
from .models import Task
from .permissions import (
    can_change_status,
    can_manage_recurring_tasks,
    can_view_task,
    get_visible_tasks,
)
from .recurrence import get_recurrence_label
from .repository import NON_RECURRING_PATTERNS
from .services import change_status, create_recurring_template, delete_recurring_template


def _isoformat(value):
    """ISO 8601 in the hotel's local time."""
    return timezone.localtime(value).isoformat() if value else None


def _serialize_task(task):
    return {
        'id': task.pk,
        'title': task.title,
        'description': task.description,
        'location': task.location,
        'room_number': task.room_number,
        'status': task.status,
        'priority': task.priority,
        'assignees': [user.pk for user in task.assignees.all()],
        'parent_task_id': task.parent_task_id,
        'scheduled_for': _isoformat(task.scheduled_for),
    }


def _serialize_template(template):
    data = _serialize_task(template)
    data.update({
        'recurrence_pattern': template.recurrence_pattern,
        'recurrence_label': get_recurrence_label(template.recurrence_pattern),
        'recurrence_start_date': _isoformat(template.recurrence_start_date),
        'next_occurrence': _isoformat(template.next_occurrence),
        'week_days': template.recurrence_week_days,
        'month_days': template.recurrence_month_days,
        'year_dates': template.recurrence_year_dates,
        'execution_hour': template.execution_hour,
        'execution_minute': template.execution_minute,
    })
    if hasattr(template, 'active_child_count'):
        data['active_child_count'] = template.active_child_count
    return data


def _get_template_or_404(pk):
    return get_object_or_404(
        Task.objects.exclude(recurrence_pattern__in=NON_RECURRING_PATTERNS),
        pk=pk,
        is_recurring=True,
        parent_task__isnull=True,
    )


# =============================================================================
# Recurring Templates
# =============================================================================

@login_required
@require_GET
def recurring_template_list(request):
    """
    Recurring templates with label, next occurrence and active child count.
    Technicians only see templates assigned to them.
    """
    queryset = (
        get_visible_tasks(request.user)
        .filter(is_recurring=True, parent_task__isnull=True)
        .exclude(recurrence_pattern__in=NON_RECURRING_PATTERNS)
        .annotate(active_child_count=Count(
            'child_tasks',
            filter=~Q(child_tasks__status__in=Task.TERMINAL_STATUSES),
            distinct=True,
        ))
        .prefetch_related('assignees')
        .order_by('title', 'pk')
    )

    template_filter = RecurringTemplateFilter(request.GET, queryset=queryset)
    if not template_filter.is_valid():
        return JsonResponse({'errors': template_filter.errors.get_json_data()}, status=400)

    return JsonResponse({
        'results': [_serialize_template(template) for template in template_filter.qs],
    })


@login_required
@require_POST
def recurring_template_create(request):
    """Create a recurring template and materialize its first child tasks."""
    if not can_manage_recurring_tasks(request.user):
        return HttpResponseForbidden('Permission denied')

    form = RecurringTemplateForm(request.POST, user=request.user)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

    data = form.cleaned_data
    try:
        template = create_recurring_template(
            title=data['title'],
            created_by=request.user,
            recurrence_pattern=data['recurrence_pattern'],
            assignees=data['assignees'],
            description=data['description'],
            location=data['location'],
            room_number=data['room_number'],
            priority=data['priority'],
            recurrence_start_date=data['recurrence_start_date'],
            week_days=data['week_days'],
            month_days=data['month_days'],
            year_dates=data['year_dates'],
            execution_hour=data['execution_hour'],
            execution_minute=data['execution_minute'],
        )
    except ValidationError as e:
        return JsonResponse({'errors': e.messages}, status=400)

    return JsonResponse(_serialize_template(template), status=201)


@login_required
@require_POST
def recurring_template_delete(request, pk):
    """Delete a template with its pending child tasks."""
    if not can_manage_recurring_tasks(request.user):
        return HttpResponseForbidden('Permission denied')

    template = _get_template_or_404(pk)
    deleted_count = delete_recurring_template(template, request.user)

    return JsonResponse({'deleted': True, 'deleted_child_tasks': deleted_count})


@login_required
@require_GET
def recurring_template_children(request, pk):
    """Child tasks of one template, ordered by scheduled time."""
    template = _get_template_or_404(pk)
    if not can_view_task(request.user, template):
        return HttpResponseForbidden('Permission denied')

    queryset = (
        get_visible_tasks(request.user)
        .filter(parent_task=template)
        .prefetch_related('assignees')
        .order_by('scheduled_for')
    )

    child_filter = ChildTaskFilter(request.GET, queryset=queryset)
    if not child_filter.is_valid():
        return JsonResponse({'errors': child_filter.errors.get_json_data()}, status=400)

    return JsonResponse({
        'template': _serialize_template(template),
        'results': [_serialize_task(child) for child in child_filter.qs],
    })


@login_required
@require_POST
def process_recurring_tasks_view(request):
    """Run one sweep now and return its result. Admin only."""
    if not request.user.is_admin():
        return HttpResponseForbidden('Permission denied')

    result = scheduler.trigger_manually()
    if result is None:
        return JsonResponse({'error': 'Recurring task processing failed'}, status=500)

    return JsonResponse(result)


# =============================================================================
# Status Changes
# =============================================================================

@login_required
@require_POST
def task_status_change(request, pk):
    task = get_object_or_404(Task, pk=pk)

    if not can_change_status(request.user, task):
        return HttpResponseForbidden('Permission denied')

    form = TaskStatusForm(request.POST, task=task)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

    try:
        change_status(task, request.user, form.cleaned_data['status'], form.cleaned_data['notes'])
    except ValidationError as e:
        return JsonResponse({'errors': e.messages}, status=400)

    return JsonResponse(_serialize_task(task))
