"""
Tests for the Django-Q2 driven recurring task scheduler and its commands.
"""

import logging
from datetime import timedelta
from io import StringIO
from unittest import mock

import pytest
from django.core.management import call_command
from django_q.models import Schedule

from apps.notifications import scheduler as scheduler_module
from apps.notifications.models import Notification
from apps.notifications.scheduler import JOB_FUNC, SCHEDULE_NAME, RecurringTaskScheduler
from apps.tasks.models import Task

from conftest import local

pytestmark = pytest.mark.django_db


class TestStartStop:

    def test_start_installs_repeating_schedule(self, now):
        started = RecurringTaskScheduler().start(now=now)

        schedule = Schedule.objects.get(name=SCHEDULE_NAME)
        assert started is True
        assert schedule.func == JOB_FUNC
        assert schedule.schedule_type == Schedule.MINUTES
        assert schedule.minutes == 15
        assert schedule.repeats == -1
        assert schedule.next_run == now + timedelta(seconds=5)

    def test_start_twice_keeps_one_schedule(self, now, caplog):
        scheduler = RecurringTaskScheduler()
        scheduler.start(now=now)

        with caplog.at_level(logging.INFO, logger='apps.notifications.scheduler'):
            assert scheduler.start(now=now) is False

        assert Schedule.objects.filter(name=SCHEDULE_NAME).count() == 1
        assert 'already running' in caplog.text

    def test_stop_removes_schedule(self, now):
        scheduler = RecurringTaskScheduler()
        scheduler.start(now=now)

        assert scheduler.stop() is True
        assert not scheduler.is_running()
        assert scheduler.stop() is False


class TestRunJob:

    def test_sweeps_then_checks_notifications(self, make_template, make_child, technician, now):
        template = make_template('daily', recurrence_start_date=local(2024, 1, 8, 9, 0))
        make_child(make_template('weekly'), local(2024, 1, 7, 10, 0), assignees=[technician])
        scheduler = RecurringTaskScheduler()

        result = scheduler.run_job(now=now)

        assert result['total'] == 2
        assert Task.objects.filter(parent_task=template).count() == 8
        assert Notification.objects.filter(user=technician).count() == 1
        assert scheduler.notification_state.has_notified(now.date())

    def test_outside_notification_window_only_sweeps(self, make_template):
        make_template('daily')
        scheduler = RecurringTaskScheduler()

        result = scheduler.run_job(now=local(2024, 1, 7, 15, 0))

        assert result['processed'] == 8
        assert scheduler.notification_state.last_notified_date is None

    def test_failure_is_logged_not_raised(self, caplog):
        scheduler = RecurringTaskScheduler()

        with mock.patch(
            'apps.notifications.scheduler.process_recurring_tasks',
            side_effect=RuntimeError('database is locked'),
        ):
            with caplog.at_level(logging.ERROR, logger='apps.notifications.scheduler'):
                assert scheduler.run_job() is None

        assert 'Error processing recurring tasks' in caplog.text

    def test_trigger_manually_returns_sweep_result(self, now):
        result = RecurringTaskScheduler().trigger_manually(now=now)

        assert result == {'processed': 0, 'total': 0, 'results': []}

    def test_module_job_delegates_to_scheduler(self):
        expected = {'processed': 0, 'total': 0, 'results': []}

        with mock.patch.object(scheduler_module.scheduler, 'run_job', return_value=expected) as run_job:
            assert scheduler_module.run_recurring_tasks_job() == expected

        run_job.assert_called_once_with()


class TestCommands:

    def test_setup_schedules(self):
        out = StringIO()

        call_command('setup_schedules', stdout=out)
        call_command('setup_schedules', stdout=out)

        assert Schedule.objects.filter(name=SCHEDULE_NAME).count() == 1
        assert 'Created schedule: Recurring Task Sweep' in out.getvalue()
        assert 'Schedule already exists' in out.getvalue()

    def test_setup_schedules_remove(self):
        call_command('setup_schedules', stdout=StringIO())

        out = StringIO()
        call_command('setup_schedules', '--remove', stdout=out)

        assert not Schedule.objects.filter(name=SCHEDULE_NAME).exists()
        assert 'Removed schedule' in out.getvalue()

    def test_process_recurring_tasks(self, make_template):
        template = make_template('daily')
        out = StringIO()

        call_command('process_recurring_tasks', stdout=out)

        assert Task.objects.filter(parent_task=template).count() == 8
        assert f'Template #{template.pk}: Created 8 child tasks' in out.getvalue()
        assert 'Created 8 task(s) across 1 recurring template(s)' in out.getvalue()
