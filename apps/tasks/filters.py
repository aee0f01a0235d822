"""
Task filters using django-filter.

Provides filtering for the recurring task JSON views:
- RecurringTemplateFilter: pattern, assignee, search
- ChildTaskFilter: status (multi-select), scheduled date range
"""

import django_filters
from django.db.models import Q

from .models import Task
from apps.accounts.models import User


class RecurringTemplateFilter(django_filters.FilterSet):
    """
    Filter for the recurring template list.

    Usage in views:
        filterset = RecurringTemplateFilter(request.GET, queryset=queryset)
        templates = filterset.qs
    """

    search = django_filters.CharFilter(method='filter_search', label='Search')

    pattern = django_filters.CharFilter(
        field_name='recurrence_pattern',
        label='Recurrence Pattern'
    )

    assignee = django_filters.ModelChoiceFilter(
        field_name='assignees',
        queryset=User.objects.filter(is_active=True),
        distinct=True,
        label='Assignee'
    )

    class Meta:
        model = Task
        fields = ['pattern', 'assignee']

    def filter_search(self, queryset, name, value):
        """
        Search across title, description, location and room number.
        Case-insensitive partial matching.
        """
        if not value:
            return queryset

        return queryset.filter(
            Q(title__icontains=value) |
            Q(description__icontains=value) |
            Q(location__icontains=value) |
            Q(room_number__icontains=value)
        )


class ChildTaskFilter(django_filters.FilterSet):
    """Filter for the child tasks of one template."""

    status = django_filters.MultipleChoiceFilter(
        choices=Task.Status.choices,
        label='Status'
    )

    scheduled_after = django_filters.IsoDateTimeFilter(
        field_name='scheduled_for',
        lookup_expr='gte',
        label='Scheduled From'
    )

    scheduled_before = django_filters.IsoDateTimeFilter(
        field_name='scheduled_for',
        lookup_expr='lt',
        label='Scheduled Before'
    )

    class Meta:
        model = Task
        fields = ['status']
