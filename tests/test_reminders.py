import pytest

from blinky.core.models import get_all_task_schedules
from blinky.core.task_manager import TaskManager
from blinky.plugins.assignments.service import AssignmentItem, sync_assignments
from blinky.plugins.reminders import TASK_NAME, register_tasks
from blinky.plugins.reminders.service import run_reminder_pass
from blinky.plugins.reminders.task import ReminderTask
from blinky.plugins.users.service import set_notifications_enabled, upsert_user

from conftest import FakeGateway


def _user(email, token, titles=()):
    upsert_user(email, token)
    if titles:
        sync_assignments(email, [AssignmentItem(title=t) for t in titles])


def test_identity_without_assignments_is_not_dispatched(db, composer, dispatcher, gateway):
    _user("busy@x.com", "ExpoPushToken[busy]", ["Essay", "Lab"])
    _user("idle@x.com", "ExpoPushToken[idle]")

    summary = run_reminder_pass(composer, dispatcher, title="Reminder")

    assert summary == {"identities": 2, "sent": 1, "skipped": 1, "failed": 0}
    assert [m.to for m in gateway.sent] == ["ExpoPushToken[busy]"]
    message = gateway.sent[0]
    assert message.title == "Reminder"
    assert message.data == {"type": "reminder", "assignmentCount": 2, "email": "busy@x.com"}


def test_muted_and_tokenless_identities_are_ignored(db, composer, dispatcher, gateway):
    _user("muted@x.com", "ExpoPushToken[muted]", ["Essay"])
    set_notifications_enabled("muted@x.com", False)
    _user("notoken@x.com", None, ["Essay"])

    summary = run_reminder_pass(composer, dispatcher)
    assert summary["identities"] == 0
    assert gateway.batches == []


class FlakyGateway(FakeGateway):
    def send_batch(self, messages):
        if messages[0].to == "ExpoPushToken[broken]":
            raise RuntimeError("gateway down")
        return super().send_batch(messages)


def test_failure_for_one_identity_does_not_stop_others(db, composer):
    from blinky.plugins.push import PushDispatcher

    gateway = FlakyGateway()
    _user("broken@x.com", "ExpoPushToken[broken]", ["Essay"])
    _user("fine@x.com", "ExpoPushToken[fine]", ["Essay"])

    summary = run_reminder_pass(composer, PushDispatcher(gateway))
    assert summary["sent"] == 1
    assert summary["failed"] == 1
    assert [m.to for m in gateway.sent] == ["ExpoPushToken[fine]"]


def test_error_ticket_counts_as_failed(db, composer):
    from blinky.plugins.push import PushDispatcher

    _user("gone@x.com", "ExpoPushToken[gone]", ["Essay"])
    gateway = FakeGateway(error_tokens={"ExpoPushToken[gone]"})
    summary = run_reminder_pass(composer, PushDispatcher(gateway))
    assert summary["failed"] == 1
    assert summary["sent"] == 0


def test_task_run_records_schedule(db, composer, dispatcher):
    task = ReminderTask("reminders", {"interval_seconds": 30}, composer, dispatcher)
    task.ensure_scheduled()
    summary = task.run()

    assert summary["identities"] == 0
    row = get_all_task_schedules()[0]
    assert row["component_name"] == "reminders"
    assert row["schedule_config"] == {"interval_seconds": 30}
    assert row["last_run_at"] is not None
    assert row["next_run_at"] > row["last_run_at"]
    assert row["last_error"] is None


def test_task_run_records_error(db, composer, dispatcher, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr("blinky.plugins.reminders.task.run_reminder_pass", boom)
    task = ReminderTask("reminders", {}, composer, dispatcher)
    task.ensure_scheduled()
    with pytest.raises(RuntimeError):
        task.run()
    assert get_all_task_schedules()[0]["last_error"] == "store unavailable"


def test_register_tasks_wires_task_manager(blinky_app, gateway):
    _user("busy@x.com", "ExpoPushToken[busy]", ["Essay"])
    register_tasks(blinky_app)

    assert blinky_app.task_manager.run_task_now(TASK_NAME) is True
    assert blinky_app.task_manager.last_results[TASK_NAME]["sent"] == 1
    assert gateway.sent[0].title == "📚 Assignment Reminder"


def test_register_tasks_respects_disable(blinky_app):
    blinky_app.config.data["reminders"]["enable"] = False
    register_tasks(blinky_app)
    assert blinky_app.task_manager.run_task_now(TASK_NAME) is False
