"""
Tests for process_recurring_tasks: the sweep over all recurring templates.
"""

import pytest

from apps.tasks.models import Task
from apps.tasks.repository import TaskRepository
from apps.tasks.services import process_recurring_tasks

pytestmark = pytest.mark.django_db


class BrokenTemplateRepository(TaskRepository):
    """Fails to load the children of one template."""

    def __init__(self, broken_template_id):
        self.broken_template_id = broken_template_id

    def get_child_tasks(self, template_id):
        if template_id == self.broken_template_id:
            raise RuntimeError('connection reset')
        return super().get_child_tasks(template_id)


def test_empty_template_list(now):
    assert process_recurring_tasks(now=now) == {'processed': 0, 'total': 0, 'results': []}


def test_fills_every_template(make_template, now):
    pool = make_template('daily', title='Check pool filters')
    boiler = make_template('2_weeks', title='Inspect boiler')

    result = process_recurring_tasks(now=now)

    assert result == {
        'processed': 16,
        'total': 2,
        'results': [
            {'taskId': pool.pk, 'status': 'success', 'message': 'Created 8 child tasks'},
            {'taskId': boiler.pk, 'status': 'success', 'message': 'Created 8 child tasks'},
        ],
    }


def test_second_sweep_is_a_no_op(make_template, now):
    make_template('daily')
    process_recurring_tasks(now=now)

    result = process_recurring_tasks(now=now)

    assert result['processed'] == 0
    assert result['total'] == 1
    assert result['results'][0]['message'] == 'Created 0 child tasks'
    assert Task.objects.filter(parent_task__isnull=False).count() == 8


def test_only_active_templates_are_examined(make_template, make_child, supervisor, now):
    template = make_template('weekly')
    make_template('once')
    make_template('cancelled')
    make_child(template, now)
    Task.objects.create(title='Broken lamp, room 12', created_by=supervisor)

    result = process_recurring_tasks(now=now)

    assert result['total'] == 1
    assert [entry['taskId'] for entry in result['results']] == [template.pk]


def test_template_error_does_not_stop_sweep(make_template, now):
    broken = make_template('daily', title='Broken template')
    healthy = make_template('daily', title='Healthy template')

    result = process_recurring_tasks(repository=BrokenTemplateRepository(broken.pk), now=now)

    assert result['processed'] == 8
    assert result['total'] == 2
    assert result['results'] == [
        {'taskId': broken.pk, 'status': 'error', 'error': 'connection reset'},
        {'taskId': healthy.pk, 'status': 'success', 'message': 'Created 8 child tasks'},
    ]
    assert Task.objects.filter(parent_task=broken).count() == 0
