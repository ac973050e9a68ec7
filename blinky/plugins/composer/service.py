"""
Service layer: the insights view (assignments, latest screen time and a reality-check message).
"""
import math
from typing import Any, Dict

from blinky.plugins.assignments.service import get_assignments_by_email
from blinky.plugins.composer.composer import NotificationComposer
from blinky.plugins.composer.templates import NO_SCREENTIME_MESSAGE
from blinky.plugins.screentime.service import get_latest_screentime, whole_minutes
from blinky.plugins.users.service import require_email

MINUTES_PER_DAY = 1440


def day_percentage(total_minutes: float) -> int:
    """Share of a 24h day, rounded half up."""
    return int(math.floor(total_minutes / MINUTES_PER_DAY * 100 + 0.5))


def get_insights(email: str, composer: NotificationComposer) -> Dict[str, Any]:
    """
    Without any screen-time snapshot the AI is not consulted and a generic message is returned.
    assignments holds ORM rows; the API layer serializes them.
    """
    require_email(email)
    assignments = get_assignments_by_email(email)
    snapshot = get_latest_screentime(email)
    if snapshot is None:
        return {
            "hasSocialMediaData": False,
            "message": NO_SCREENTIME_MESSAGE,
            "assignments": assignments,
        }

    app_usage = snapshot.app_usage or []
    total = whole_minutes(snapshot.total_usage_minutes)
    percentage = day_percentage(total)
    message = composer.compose_insight(assignments, app_usage, percentage)
    return {
        "hasSocialMediaData": True,
        "message": message,
        "socialMediaPercentage": percentage,
        "totalScreenTimeMinutes": total,
        "topApps": app_usage[:3],
        "assignments": assignments,
    }
