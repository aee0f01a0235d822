"""
Admin configuration for activity_log app.
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import TaskActivity


class ActorFilter(admin.SimpleListFilter):
    """Split history into scheduler entries and staff entries."""

    title = 'performed by'
    parameter_name = 'actor'

    def lookups(self, request, model_admin):
        return (
            ('system', 'Recurring task scheduler'),
            ('staff', 'Staff'),
        )

    def queryset(self, request, queryset):
        if self.value() == 'system':
            return queryset.filter(user__isnull=True)
        if self.value() == 'staff':
            return queryset.filter(user__isnull=False)
        return queryset


@admin.register(TaskActivity)
class TaskActivityAdmin(admin.ModelAdmin):
    """Read-only task history, including scheduler-generated entries."""

    list_display = (
        'task_link', 'actor_display', 'action_type',
        'description_preview', 'status_to', 'created_at'
    )
    list_filter = (ActorFilter, 'action_type', 'user_role')
    search_fields = ('task_title', 'description', 'user_name')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = [field.name for field in TaskActivity._meta.fields]

    def task_link(self, obj):
        # Deleted tasks only survive as a title snapshot
        if obj.task_id is None:
            return obj.task_title
        url = reverse('admin:tasks_task_change', args=[obj.task_id])
        return format_html('<a href="{}">#{} {}</a>', url, obj.task_id, obj.task_title)
    task_link.short_description = 'Task'

    def actor_display(self, obj):
        if obj.user_id is None:
            return format_html('<em style="color: #6B7280;">{}</em>', obj.user_name)
        return f'{obj.user_name} ({obj.user_role})'
    actor_display.short_description = 'Performed by'

    def description_preview(self, obj):
        return obj.description[:80] + '...' if len(obj.description) > 80 else obj.description
    description_preview.short_description = 'Description'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('task', 'user')
