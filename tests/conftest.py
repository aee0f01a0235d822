"""
Shared fixtures for the hotel maintenance test suite.

All dates are built in the hotel's local time zone (Europe/Podgorica).
The reference "now" is Sunday 2024-01-07 08:00, inside the morning
notification window.
"""

from datetime import datetime

import pytest
from django.utils import timezone

from apps.accounts.models import User
from apps.tasks.models import Task


def local(*args):
    """Aware datetime for a local wall-clock time."""
    return timezone.make_aware(datetime(*args))


@pytest.fixture
def now():
    return local(2024, 1, 7, 8, 0)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@hotel.local',
        password='testpass123',
        first_name='Ana',
        last_name='Admin',
        role=User.Role.ADMIN,
    )


@pytest.fixture
def supervisor(db):
    return User.objects.create_user(
        email='sef@hotel.local',
        password='testpass123',
        first_name='Marko',
        last_name='Sef',
        role=User.Role.SEF,
        department=User.Department.TEHNICKA,
    )


@pytest.fixture
def operator(db):
    return User.objects.create_user(
        email='operater@hotel.local',
        password='testpass123',
        first_name='Ivana',
        last_name='Operater',
        role=User.Role.OPERATER,
    )


@pytest.fixture
def technician(db):
    return User.objects.create_user(
        email='radnik@hotel.local',
        password='testpass123',
        first_name='Petar',
        last_name='Radnik',
        role=User.Role.RADNIK,
        department=User.Department.TEHNICKA,
    )


@pytest.fixture
def second_technician(db):
    return User.objects.create_user(
        email='radnik2@hotel.local',
        password='testpass123',
        first_name='Jovan',
        last_name='Radnik',
        role=User.Role.RADNIK,
        department=User.Department.TEHNICKA,
    )


@pytest.fixture
def make_template(db, supervisor, technician):
    """Factory for recurring templates assigned to the technician."""

    def _make(pattern='daily', assignees=None, **fields):
        fields.setdefault('title', 'Check pool filters')
        fields.setdefault('location', 'Hotel Slovenska, Bazen')
        fields.setdefault('status', Task.Status.ASSIGNED_TO_RADNIK)
        template = Task.objects.create(
            created_by=supervisor,
            is_recurring=True,
            recurrence_pattern=pattern,
            **fields
        )
        template.assignees.set([technician] if assignees is None else assignees)
        return template

    return _make


@pytest.fixture
def make_child(db, supervisor):
    """Factory for child task instances of a template."""

    def _make(template, scheduled_for, status=Task.Status.ASSIGNED_TO_RADNIK, assignees=(), **fields):
        child = Task.objects.create(
            title=template.title,
            created_by=supervisor,
            parent_task=template,
            recurrence_pattern=template.recurrence_pattern,
            scheduled_for=scheduled_for,
            status=status,
            **fields
        )
        if assignees:
            child.assignees.set(assignees)
        return child

    return _make
