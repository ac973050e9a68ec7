"""
Per-plugin API for screen time. Mounted at /api/.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter
from pydantic import ConfigDict

from blinky.api.schemas import CamelModel
from blinky.core.errors import ValidationError
from blinky.plugins.users.service import require_email
from .service import AppUsage, store_screentime, usage_to_json


class AppUsageIn(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    app_name: Optional[str] = None
    usage_minutes: Optional[Union[int, float]] = None


class ScreentimeRequest(CamelModel):
    email: Optional[str] = None
    app_usage: Optional[List[AppUsageIn]] = None
    date: Optional[str] = None


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(tags=["Screen Time"])

    @router.post("/screentime")
    def submit_screentime(payload: ScreentimeRequest) -> Dict[str, Any]:
        """Append one usage snapshot from the mobile app."""
        email = require_email(payload.email)
        if payload.app_usage is None:
            raise ValidationError("appUsage array is required")
        usage = [AppUsage(a.app_name, a.usage_minutes) for a in payload.app_usage]
        result = store_screentime(email, usage, payload.date)
        return {
            "success": True,
            "message": "Screen time data received and stored",
            "received": {
                "email": email,
                "date": result["date"],
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "appUsage": usage_to_json(usage),
                "totalApps": result["total_apps"],
                "totalUsageMinutes": result["total_usage_minutes"],
            },
        }

    return router
