"""
Admin configuration for accounts app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.html import format_html

from apps.tasks.models import Task

from .models import User


ROLE_COLORS = {
    User.Role.ADMIN: '#7C3AED',
    User.Role.SEF: '#DC2626',
    User.Role.OPERATER: '#EA580C',
    User.Role.RADNIK: '#2563EB',
    User.Role.SERVISER: '#0891B2',
}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Hotel staff, signed in by email, with their open maintenance workload."""

    list_display = (
        'email', 'get_full_name', 'role_display', 'department',
        'open_task_count', 'manages_recurring_tasks', 'is_active'
    )
    list_filter = ('role', 'department', 'is_active')
    search_fields = ('email', 'first_name', 'last_name', 'phone')
    ordering = ('first_name', 'last_name')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Staff member', {'fields': ('first_name', 'last_name', 'phone', 'role', 'department')}),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'email', 'first_name', 'last_name', 'role', 'department',
                'password1', 'password2'
            ),
        }),
    )

    readonly_fields = ('created_at', 'updated_at', 'last_login')

    def get_queryset(self, request):
        open_statuses = [
            status for status in Task.Status.values
            if status not in Task.TERMINAL_STATUSES
        ]
        return super().get_queryset(request).annotate(
            open_tasks=Count(
                'assigned_tasks',
                filter=Q(assigned_tasks__status__in=open_statuses),
                distinct=True,
            )
        )

    def open_task_count(self, obj):
        return obj.open_tasks
    open_task_count.short_description = 'Open tasks'
    open_task_count.admin_order_field = 'open_tasks'

    def manages_recurring_tasks(self, obj):
        return obj.can_manage_recurring_tasks()
    manages_recurring_tasks.short_description = 'Recurring templates'
    manages_recurring_tasks.boolean = True

    def role_display(self, obj):
        color = ROLE_COLORS.get(obj.role, '#6B7280')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 8px; '
            'border-radius: 4px; font-size: 11px;">{}</span>',
            color, obj.get_role_display()
        )
    role_display.short_description = 'Role'
    role_display.admin_order_field = 'role'
