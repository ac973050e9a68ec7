import logging

from .task import ReminderTask

TASK_NAME = "reminders"


def register_tasks(app):
    """Register the reminder loop with the app's task manager (when reminders.enable is true)."""
    config = app.config.get_section("reminders")
    if not config.get("enable", True):
        logging.info("Reminder loop disabled (reminders.enable: false)")
        return
    task = ReminderTask(TASK_NAME, config, app.composer, app.dispatcher)
    task.ensure_scheduled()
    app.task_manager.register_task(TASK_NAME, task.run, task.interval_seconds)
