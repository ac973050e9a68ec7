"""
Per-plugin API for manual push sends. Mounted at /api/.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter

from blinky.api.schemas import CamelModel


class SendNotificationRequest(CamelModel):
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    email: Optional[str] = None


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(tags=["Push"])

    @router.post("/send-notification")
    def send_notification(payload: SendNotificationRequest) -> Dict[str, Any]:
        """Push to one identity (email) or every registered device."""
        return app.dispatcher.send(payload.title, payload.body, payload.data, payload.email or None)

    return router
