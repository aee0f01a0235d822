"""
Forms for tasks app.

Includes:
- RecurringTemplateForm: Create a recurring task template
- TaskStatusForm: Change task status
"""

from django import forms
from django.core.exceptions import ValidationError

from .models import Task
from .permissions import get_assignable_users
from .recurrence import is_valid_recurrence_pattern
from apps.accounts.models import User


WEEK_DAY_CHOICES = [
    (0, 'Sunday'),
    (1, 'Monday'),
    (2, 'Tuesday'),
    (3, 'Wednesday'),
    (4, 'Thursday'),
    (5, 'Friday'),
    (6, 'Saturday'),
]

MONTH_DAY_CHOICES = [(day, str(day)) for day in range(1, 32)]


class RecurringTemplateForm(forms.Form):
    """
    Form for creating a recurring task template.

    Detailed recurrence fields only apply to patterns of the matching
    unit (week days to weekly patterns, month days to monthly ones, year
    dates to yearly ones).
    """

    title = forms.CharField(max_length=255)
    description = forms.CharField(widget=forms.Textarea, required=False)
    location = forms.CharField(max_length=255, required=False)
    room_number = forms.CharField(max_length=20, required=False)
    priority = forms.ChoiceField(choices=Task.Priority.choices, required=False)
    assignees = forms.ModelMultipleChoiceField(queryset=None, required=False)

    recurrence_pattern = forms.CharField(
        max_length=20,
        help_text='daily, weekly, monthly, yearly or e.g. "3_months"'
    )
    recurrence_start_date = forms.DateTimeField(required=False)
    week_days = forms.TypedMultipleChoiceField(
        choices=WEEK_DAY_CHOICES, coerce=int, required=False
    )
    month_days = forms.TypedMultipleChoiceField(
        choices=MONTH_DAY_CHOICES, coerce=int, required=False
    )
    year_dates = forms.CharField(
        required=False,
        help_text='Comma-separated month-day pairs, e.g. "3-15, 9-1"'
    )
    execution_hour = forms.IntegerField(min_value=0, max_value=23, required=False)
    execution_minute = forms.IntegerField(min_value=0, max_value=59, required=False)

    def __init__(self, *args, user=None, **kwargs):
        """
        Args:
            user: Current logged-in user; limits the assignable technicians
        """
        super().__init__(*args, **kwargs)
        self.user = user

        if user:
            self.fields['assignees'].queryset = get_assignable_users(user)
        else:
            self.fields['assignees'].queryset = User.objects.none()

    def clean_title(self):
        title = self.cleaned_data.get('title', '').strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        return title

    def clean_recurrence_pattern(self):
        pattern = self.cleaned_data.get('recurrence_pattern', '').strip()
        if pattern == 'once' or not is_valid_recurrence_pattern(pattern):
            raise ValidationError(f"Invalid recurrence pattern: {pattern}")
        return pattern

    def clean_year_dates(self):
        """Parse "month-day" pairs into [{'month': m, 'day': d}, ...]."""
        raw = self.cleaned_data.get('year_dates', '')
        year_dates = []

        for chunk in raw.split(','):
            chunk = chunk.strip()
            if not chunk:
                continue
            try:
                month, day = (int(part) for part in chunk.split('-'))
            except ValueError:
                raise ValidationError(f'Invalid date "{chunk}", expected month-day')
            if not 1 <= month <= 12 or not 1 <= day <= 31:
                raise ValidationError(f'Invalid date "{chunk}"')
            year_dates.append({'month': month, 'day': day})

        return year_dates


class TaskStatusForm(forms.Form):
    """Form for changing task status."""

    status = forms.ChoiceField(choices=Task.Status.choices)
    notes = forms.CharField(
        widget=forms.Textarea,
        required=False,
        help_text='Worker report or reason for the change'
    )

    def __init__(self, *args, task=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.task = task

    def clean_status(self):
        """Validate status transition."""
        new_status = self.cleaned_data.get('status')

        if self.task and not self.task.can_transition_to(new_status):
            raise ValidationError(
                f"Cannot change status from '{self.task.get_status_display()}' to "
                f"'{dict(Task.Status.choices).get(new_status)}'"
            )

        return new_status
