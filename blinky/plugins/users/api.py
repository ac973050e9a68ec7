"""
Per-plugin API for identities. Mounted at /api/.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, StrictBool

from blinky.api.schemas import CamelModel, UTCDateTime
from blinky.core.errors import ValidationError
from blinky.plugins.push.expo import is_push_token
from .service import list_users, register_user, require_email, set_notifications_enabled


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    push_token: Optional[str] = None
    notifications_enabled: Optional[StrictBool] = None


class ToggleNotificationsRequest(CamelModel):
    email: Optional[str] = None
    enabled: Optional[StrictBool] = None


class UserResponse(CamelModel):
    """Pydantic view of User; serializes from ORM."""

    email: str
    push_token: Optional[str] = None
    notifications_enabled: bool = True
    created_at: Optional[UTCDateTime] = None
    last_seen: Optional[UTCDateTime] = None


class UsersResponse(BaseModel):
    count: int
    users: List[UserResponse]


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(tags=["Users"])

    @router.post("/register")
    def register(payload: RegisterRequest) -> Dict[str, Any]:
        """Create or refresh an identity; optionally set its push token and preference."""
        email = require_email(payload.email)
        push_token = payload.push_token or None
        if push_token and not is_push_token(push_token):
            raise ValidationError("Invalid Expo push token")
        register_user(email, push_token, payload.notifications_enabled)
        return {"success": True, "message": "User registered successfully", "email": email}

    @router.post("/toggle-notifications")
    def toggle_notifications(payload: ToggleNotificationsRequest) -> Dict[str, Any]:
        email = require_email(payload.email)
        if payload.enabled is None:
            raise ValidationError("Enabled must be a boolean")
        result = set_notifications_enabled(email, payload.enabled)
        return {
            "success": True,
            "message": f"Notifications {'enabled' if payload.enabled else 'disabled'}",
            "email": result["email"],
            "enabled": result["enabled"],
        }

    @router.get("/users", response_model=UsersResponse)
    def get_users() -> UsersResponse:
        users = [UserResponse.model_validate(u) for u in list_users()]
        return UsersResponse(count=len(users), users=users)

    return router
