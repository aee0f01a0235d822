"""
Tests for the morning notifications of tasks scheduled today.
"""

import logging
from smtplib import SMTPException
from unittest import mock

import pytest
from django.core import mail

from apps.notifications.models import Notification
from apps.notifications.services import notify_user
from apps.notifications.tasks import (
    DailyNotificationState,
    get_tasks_scheduled_for_today,
    is_notification_time,
    run_scheduled_notification_check,
    send_scheduled_notifications,
)
from apps.tasks.models import Task

from conftest import local


class TestDailyNotificationState:

    def test_tracks_last_notified_date(self):
        state = DailyNotificationState()
        today = local(2024, 1, 7).date()

        assert not state.has_notified(today)
        state.mark_notified(today)
        assert state.has_notified(today)
        assert not state.has_notified(local(2024, 1, 8).date())

    def test_reset(self):
        state = DailyNotificationState()
        state.mark_notified(local(2024, 1, 7).date())

        state.reset()

        assert state.last_notified_date is None


@pytest.mark.parametrize('hour, minute, expected', [
    (8, 0, True),
    (8, 14, True),
    (8, 15, False),
    (7, 59, False),
    (20, 5, False),
])
def test_is_notification_time(hour, minute, expected):
    assert is_notification_time(local(2024, 1, 7, hour, minute)) is expected


@pytest.mark.django_db
class TestTasksScheduledForToday:

    def test_selects_assigned_children_due_today(self, make_template, make_child, technician, supervisor, now):
        # One template per child: a template has at most one active child a day
        due = make_child(make_template(), local(2024, 1, 7, 10, 0), assignees=[technician])
        midnight = make_child(make_template(), local(2024, 1, 7, 0, 0), assignees=[technician])
        make_child(make_template(), local(2024, 1, 8, 0, 0), assignees=[technician])
        make_child(
            make_template(), local(2024, 1, 7, 11, 0), assignees=[technician],
            status=Task.Status.COMPLETED,
        )
        make_child(make_template(), local(2024, 1, 7, 12, 0))
        make_child(
            make_template(), local(2024, 1, 7, 13, 0), assignees=[technician],
            scheduled_notification_sent=True,
        )
        standalone = Task.objects.create(
            title='Fix door', created_by=supervisor,
            status=Task.Status.ASSIGNED_TO_RADNIK, scheduled_for=local(2024, 1, 7, 9, 0),
        )
        standalone.assignees.set([technician])

        tasks = get_tasks_scheduled_for_today(now=now)

        assert tasks == [midnight, due]

    def test_lookup_failure_yields_empty_list(self, now):
        repository = mock.Mock()
        repository.get_tasks_scheduled_between.side_effect = RuntimeError('timeout')

        assert get_tasks_scheduled_for_today(repository=repository, now=now) == []


@pytest.mark.django_db
class TestSendScheduledNotifications:

    def test_notifies_every_assignee(self, make_template, make_child, technician, second_technician, now):
        template = make_template('daily', location='Hotel Slovenska, Blok A')
        task = make_child(
            template, local(2024, 1, 7, 9, 30), assignees=[technician, second_technician],
            location='Hotel Slovenska, Blok A',
        )
        state = DailyNotificationState()

        result = send_scheduled_notifications(state, now=now)

        task.refresh_from_db()
        assert result == {'sent': 2, 'failed': 0}
        assert task.scheduled_notification_sent is True
        assert state.has_notified(now.date())

        notifications = Notification.objects.filter(task=task)
        assert {n.user for n in notifications} == {technician, second_technician}
        assert all(n.notification_type == Notification.NotificationType.TASK_SCHEDULED for n in notifications)
        assert 'at 09:30' in notifications[0].message

        assert sorted(message.to[0] for message in mail.outbox) == sorted([
            technician.email, second_technician.email,
        ])

    def test_runs_once_per_day(self, make_template, make_child, technician, now):
        make_child(make_template(), local(2024, 1, 7, 9, 30), assignees=[technician])
        state = DailyNotificationState()

        send_scheduled_notifications(state, now=now)
        make_child(make_template(), local(2024, 1, 7, 17, 0), assignees=[technician])
        second = send_scheduled_notifications(state, now=local(2024, 1, 7, 8, 10))

        assert second == {'sent': 0, 'failed': 0}
        assert Notification.objects.count() == 1

    def test_nothing_scheduled_still_marks_day(self, now):
        state = DailyNotificationState()

        assert send_scheduled_notifications(state, now=now) == {'sent': 0, 'failed': 0}
        assert state.has_notified(now.date())

    def test_failed_task_is_counted(self, make_template, make_child, technician, now):
        first = make_child(make_template(), local(2024, 1, 7, 9, 0), assignees=[technician])
        second = make_child(make_template(), local(2024, 1, 7, 10, 0), assignees=[technician])

        with mock.patch(
            'apps.notifications.tasks.notify_task_scheduled',
            side_effect=[RuntimeError('push failed'), 1],
        ):
            result = send_scheduled_notifications(DailyNotificationState(), now=now)

        first.refresh_from_db()
        second.refresh_from_db()
        assert result == {'sent': 1, 'failed': 1}
        assert first.scheduled_notification_sent is False
        assert second.scheduled_notification_sent is True


@pytest.mark.django_db
class TestRunScheduledNotificationCheck:

    def test_outside_window_does_nothing(self, make_template, make_child, technician):
        template = make_template('daily')
        make_child(template, local(2024, 1, 7, 14, 0), assignees=[technician])
        state = DailyNotificationState()

        assert run_scheduled_notification_check(state, now=local(2024, 1, 7, 12, 0)) is None
        assert Notification.objects.count() == 0
        assert state.last_notified_date is None

    def test_inside_window_sends_once(self, make_template, make_child, technician, now):
        template = make_template('daily')
        make_child(template, local(2024, 1, 7, 14, 0), assignees=[technician])
        state = DailyNotificationState()

        assert run_scheduled_notification_check(state, now=now) == {'sent': 1, 'failed': 0}
        assert run_scheduled_notification_check(state, now=local(2024, 1, 7, 8, 14)) is None
        assert Notification.objects.count() == 1


@pytest.mark.django_db
def test_notify_user_keeps_notification_when_email_fails(technician, caplog):
    with mock.patch('apps.notifications.services.send_mail', side_effect=SMTPException('down')):
        with caplog.at_level(logging.ERROR, logger='apps.notifications.services'):
            notification = notify_user(technician, 'Heads up', 'Boiler inspection moved')

    assert Notification.objects.filter(pk=notification.pk, user=technician).exists()
    assert 'Failed to send notification email' in caplog.text
