"""
Task management models.

Models:
- Task: A maintenance ticket ("reklamacija"). The same table holds
  normal tasks, recurring templates and the child instances generated
  from a template.
"""

from django.db import models
from django.db.models import Q
from django.conf import settings
from django.core.validators import MaxValueValidator
from django.utils import timezone


class Task(models.Model):
    """
    Main Task model.

    Status workflow (role-based):
    - new → with_operator → with_sef / assigned_to_radnik / with_external
    - with_sef → assigned_to_radnik / with_external / returned_to_operator
    - assigned_to_radnik → completed / returned_to_sef / returned_to_operator
    - Any non-terminal status can transition to cancelled

    Recurrence:
    - Template: is_recurring=True, parent_task=None, pattern != 'once'
    - Child instance: parent_task=<template>, scheduled_for set,
      created directly in assigned_to_radnik
    """

    class Status(models.TextChoices):
        NEW = 'new', 'New'
        WITH_OPERATOR = 'with_operator', 'With Operator'
        WITH_SEF = 'with_sef', 'With Supervisor'
        ASSIGNED_TO_RADNIK = 'assigned_to_radnik', 'Assigned to Technician'
        WITH_EXTERNAL = 'with_external', 'With External Servicer'
        RETURNED_TO_OPERATOR = 'returned_to_operator', 'Returned to Operator'
        RETURNED_TO_SEF = 'returned_to_sef', 'Returned to Supervisor'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    class Priority(models.TextChoices):
        URGENT = 'urgent', 'Urgent'
        NORMAL = 'normal', 'Normal'
        CAN_WAIT = 'can_wait', 'Can Wait'

    TERMINAL_STATUSES = [Status.COMPLETED, Status.CANCELLED]

    # Core fields
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(
        max_length=255,
        blank=True,
        help_text='Hotel, block and room, e.g. "Hotel Slovenska, Blok A, Soba 12"'
    )
    room_number = models.CharField(max_length=20, blank=True)

    status = models.CharField(
        max_length=25,
        choices=Status.choices,
        default=Status.NEW,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.NORMAL,
        db_index=True,
    )

    # Relationships
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_tasks',
        help_text='User who reported this task'
    )
    assignees = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='assigned_tasks',
        help_text='Technicians responsible for the work'
    )
    worker_report = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='completed_tasks',
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_tasks',
    )

    # Recurrence definition (templates)
    is_recurring = models.BooleanField(default=False, db_index=True)
    recurrence_pattern = models.CharField(
        max_length=20,
        default='once',
        help_text='once/daily/weekly/monthly/yearly or "<count>_<days|weeks|months|years>"'
    )
    recurrence_start_date = models.DateTimeField(null=True, blank=True)
    next_occurrence = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Display hint only, never used for scheduling decisions'
    )
    recurrence_week_days = models.JSONField(
        default=list,
        blank=True,
        help_text='Weekday numbers, 0 = Sunday ... 6 = Saturday'
    )
    recurrence_month_days = models.JSONField(
        default=list,
        blank=True,
        help_text='Days of month, 1-31 (clamped to the month length)'
    )
    recurrence_year_dates = models.JSONField(
        default=list,
        blank=True,
        help_text='List of {"month": m, "day": d}'
    )
    execution_hour = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(23)],
    )
    execution_minute = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(59)],
    )

    # Child instances
    parent_task = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='child_tasks',
    )
    scheduled_for = models.DateTimeField(null=True, blank=True, db_index=True)
    scheduled_date = models.DateField(
        null=True,
        blank=True,
        editable=False,
        help_text='Local calendar date of scheduled_for (auto-set)'
    )

    # Notification tracking
    scheduled_notification_sent = models.BooleanField(
        default=False,
        help_text='Morning notification for the scheduled day sent'
    )

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_by'], name='task_status_creator_idx'),
            models.Index(fields=['is_recurring', 'parent_task'], name='task_recurring_parent_idx'),
            models.Index(fields=['parent_task', 'status'], name='task_parent_status_idx'),
            models.Index(fields=['scheduled_for', 'status'], name='task_scheduled_status_idx'),
        ]
        constraints = [
            # One active child per template and calendar day
            models.UniqueConstraint(
                fields=['parent_task', 'scheduled_date'],
                condition=(
                    Q(parent_task__isnull=False)
                    & ~Q(status__in=['completed', 'cancelled'])
                ),
                name='unique_active_child_per_day',
            ),
        ]

    def __str__(self):
        return f"#{self.pk}: {self.title}"

    def save(self, *args, **kwargs):
        # Keep the calendar-date dedup key in sync with scheduled_for
        if self.scheduled_for:
            self.scheduled_date = timezone.localdate(self.scheduled_for)
        else:
            self.scheduled_date = None

        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'scheduled_for' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'scheduled_date'}

        super().save(*args, **kwargs)

    # ==========================================================================
    # Recurrence Properties
    # ==========================================================================

    @property
    def is_template(self):
        """Check if this task is an active recurring template."""
        return (
            self.is_recurring
            and self.parent_task_id is None
            and self.recurrence_pattern not in ('once', 'cancelled')
        )

    @property
    def is_child(self):
        """Check if this task was generated from a recurring template."""
        return self.parent_task_id is not None

    @property
    def is_terminal(self):
        """Completed and cancelled tasks no longer count as active."""
        return self.status in self.TERMINAL_STATUSES

    # ==========================================================================
    # Status Workflow Methods
    # ==========================================================================

    def can_transition_to(self, new_status):
        """Check if status transition is valid."""
        if self.is_terminal:
            return False

        # Any status can go to cancelled
        if new_status == self.Status.CANCELLED:
            return True

        valid_transitions = {
            self.Status.NEW: [
                self.Status.WITH_OPERATOR,
                self.Status.WITH_SEF,
                self.Status.ASSIGNED_TO_RADNIK,
            ],
            self.Status.WITH_OPERATOR: [
                self.Status.WITH_SEF,
                self.Status.ASSIGNED_TO_RADNIK,
                self.Status.WITH_EXTERNAL,
            ],
            self.Status.WITH_SEF: [
                self.Status.ASSIGNED_TO_RADNIK,
                self.Status.WITH_EXTERNAL,
                self.Status.RETURNED_TO_OPERATOR,
            ],
            self.Status.ASSIGNED_TO_RADNIK: [
                self.Status.COMPLETED,
                self.Status.RETURNED_TO_SEF,
                self.Status.RETURNED_TO_OPERATOR,
            ],
            self.Status.WITH_EXTERNAL: [
                self.Status.COMPLETED,
                self.Status.RETURNED_TO_SEF,
            ],
            self.Status.RETURNED_TO_OPERATOR: [
                self.Status.WITH_SEF,
                self.Status.ASSIGNED_TO_RADNIK,
            ],
            self.Status.RETURNED_TO_SEF: [
                self.Status.ASSIGNED_TO_RADNIK,
                self.Status.WITH_EXTERNAL,
                self.Status.RETURNED_TO_OPERATOR,
            ],
        }

        return new_status in valid_transitions.get(self.status, [])
