"""
Service layer: one reminder pass over every notifiable identity.
"""
import logging
from typing import Any, Dict

from blinky.plugins.assignments.service import get_assignments_by_email
from blinky.plugins.composer.composer import NotificationComposer
from blinky.plugins.push.dispatcher import PushDispatcher
from blinky.plugins.users.service import list_notifiable

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "📚 Assignment Reminder"


def run_reminder_pass(
    composer: NotificationComposer,
    dispatcher: PushDispatcher,
    title: str = DEFAULT_TITLE,
) -> Dict[str, Any]:
    """
    Compose and send one reminder per identity that has a push token, notifications enabled
    and at least one assignment. A failure for one identity never stops the others.
    """
    users = list_notifiable()
    logger.info(f"Reminder pass starting for {len(users)} notifiable identities")
    summary = {"identities": len(users), "sent": 0, "skipped": 0, "failed": 0}
    for user in users:
        try:
            assignments = get_assignments_by_email(user.email)
            if not assignments:
                logger.info(f"No assignments for {user.email}, skipping")
                summary["skipped"] += 1
                continue
            body = composer.compose_reminder(user.email, assignments)
            data = {"type": "reminder", "assignmentCount": len(assignments), "email": user.email}
            tickets = dispatcher.send_to_address(user.push_token, title, body, data)
            if any(t.get("status") == "error" for t in tickets):
                summary["failed"] += 1
                continue
            summary["sent"] += 1
            logger.info(f"Sent reminder to {user.email}: {body}")
        except Exception as e:
            summary["failed"] += 1
            logger.exception(f"Error sending reminder to {user.email}: {e}")
    logger.info(
        f"Reminder pass done: {summary['sent']} sent, {summary['skipped']} skipped, "
        f"{summary['failed']} failed of {summary['identities']}"
    )
    return summary
