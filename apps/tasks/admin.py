"""
Admin configuration for tasks app.
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Task
from .recurrence import get_recurrence_label
from .services import ensure_child_tasks_exist


class ChildTaskInline(admin.TabularInline):
    """Inline admin for the child tasks generated from a template."""
    model = Task
    fk_name = 'parent_task'
    extra = 0
    fields = ('title', 'status', 'scheduled_for', 'scheduled_notification_sent')
    readonly_fields = fields
    can_delete = False
    show_change_link = True
    ordering = ('scheduled_for',)
    verbose_name = 'child task'
    verbose_name_plural = 'child tasks'

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = (
        'id', 'title', 'location', 'created_by', 'status_display',
        'priority_display', 'recurrence_display', 'scheduled_for',
        'next_occurrence', 'created_at'
    )
    list_filter = (
        'status', 'priority', 'is_recurring', 'recurrence_pattern',
        'created_at', 'scheduled_for'
    )
    search_fields = ('title', 'description', 'location', 'room_number')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'
    filter_horizontal = ('assignees',)
    actions = ['generate_child_tasks']

    readonly_fields = (
        'created_at', 'updated_at', 'completed_at', 'cancelled_at',
        'next_occurrence', 'scheduled_date'
    )

    fieldsets = (
        (None, {
            'fields': ('title', 'description', 'location', 'room_number')
        }),
        ('Assignment', {
            'fields': ('assignees', 'created_by')
        }),
        ('Status & Priority', {
            'fields': ('status', 'priority', 'worker_report')
        }),
        ('Recurrence', {
            'fields': (
                'is_recurring', 'recurrence_pattern', 'recurrence_start_date',
                'recurrence_week_days', 'recurrence_month_days', 'recurrence_year_dates',
                'execution_hour', 'execution_minute', 'next_occurrence'
            ),
            'classes': ('collapse',),
        }),
        ('Scheduled Instance', {
            'fields': (
                'parent_task', 'scheduled_for', 'scheduled_date',
                'scheduled_notification_sent'
            ),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'completed_at', 'cancelled_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [ChildTaskInline]

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related(
            'created_by', 'parent_task', 'cancelled_by', 'completed_by'
        )

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            'new': '#FFA500',                    # Orange
            'with_operator': '#8e44ad',          # Purple
            'with_sef': '#2980b9',               # Dark blue
            'assigned_to_radnik': '#3498db',     # Blue
            'with_external': '#16a085',          # Teal
            'returned_to_operator': '#e67e22',
            'returned_to_sef': '#e67e22',
            'completed': '#27ae60',              # Green
            'cancelled': '#95a5a6',              # Gray
        }
        color = colors.get(obj.status, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_status_display()
        )
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def priority_display(self, obj):
        """Display priority with color coding."""
        colors = {
            'can_wait': '#95a5a6',
            'normal': '#3498db',
            'urgent': '#e74c3c',
        }
        color = colors.get(obj.priority, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_priority_display()
        )
    priority_display.short_description = 'Priority'
    priority_display.admin_order_field = 'priority'

    def recurrence_display(self, obj):
        if obj.is_template:
            return get_recurrence_label(obj.recurrence_pattern)
        if obj.is_child:
            return format_html('↳ #{}', obj.parent_task_id)
        return ''
    recurrence_display.short_description = 'Recurrence'

    @admin.action(description='Generate child tasks now')
    def generate_child_tasks(self, request, queryset):
        """Fill the child task window of the selected recurring templates."""
        created_total = 0
        templates = [task for task in queryset.prefetch_related('assignees') if task.is_template]

        for template in templates:
            try:
                created_total += ensure_child_tasks_exist(template)
            except Exception as e:
                self.message_user(
                    request,
                    f'Template #{template.pk}: {e}',
                    level=messages.ERROR,
                )

        self.message_user(
            request,
            f'Created {created_total} child task(s) for {len(templates)} recurring template(s).',
            level=messages.SUCCESS,
        )
