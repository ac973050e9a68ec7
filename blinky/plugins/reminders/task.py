"""
Background task: periodic reminder pass, next_run persisted in DB.
"""
from typing import Any, Dict

from blinky.core.task import BaseTask, record_task_error, update_after_run
from blinky.plugins.reminders.service import DEFAULT_TITLE, run_reminder_pass


class ReminderTask(BaseTask):
    """Send AI-composed assignment reminders every interval_seconds."""

    def __init__(self, component_name: str, config: Dict[str, Any], composer: Any, dispatcher: Any):
        super().__init__(component_name, {"interval_seconds": int(config.get("interval_seconds") or 60)})
        self.title = config.get("title") or DEFAULT_TITLE
        self.composer = composer
        self.dispatcher = dispatcher

    def run(self, **kwargs: Any) -> Dict[str, Any]:
        try:
            summary = run_reminder_pass(self.composer, self.dispatcher, title=self.title)
        except Exception as e:
            record_task_error(self.component_name, str(e))
            raise
        update_after_run(self.component_name)
        return summary
