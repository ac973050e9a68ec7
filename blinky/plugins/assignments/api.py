"""
Per-plugin API for assignment sync. Mounted at /api/.
- POST /assignments: full replace of one identity's assignments (browser extension).
- GET /assignments: one identity's assignments, or all when no email is given.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from blinky.api.schemas import CamelModel, UTCDateTime
from blinky.core.errors import ValidationError
from blinky.plugins.users.service import require_email
from .service import AssignmentItem, get_all_assignments, get_assignments_by_email, sync_assignments


class AssignmentIn(CamelModel):
    """One scraped item; ids and other fields may arrive as numbers."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    course_id: Optional[str] = None
    title: Optional[str] = None
    course: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    description: Optional[str] = None
    action_url: Optional[str] = None
    type: Optional[str] = None
    component: Optional[str] = None


class SyncRequest(CamelModel):
    email: Optional[str] = None
    assignments: Optional[List[AssignmentIn]] = None
    extracted_at: Optional[datetime] = None


class AssignmentResponse(CamelModel):
    """Pydantic view of Assignment; serializes from ORM."""

    id: str
    email: str
    course_id: Optional[str] = None
    title: Optional[str] = None
    course: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    description: Optional[str] = None
    action_url: Optional[str] = None
    type: Optional[str] = None
    component: Optional[str] = None
    extracted_at: Optional[UTCDateTime] = None
    created_at: Optional[UTCDateTime] = None


class AssignmentsResponse(BaseModel):
    count: int
    assignments: List[AssignmentResponse]


def serialize_assignments(rows: List[Any]) -> List[Dict[str, Any]]:
    """JSON-ready assignment dicts (camelCase), for responses built by hand."""
    return [AssignmentResponse.model_validate(r).model_dump(mode="json", by_alias=True) for r in rows]


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(tags=["Assignments"])

    @router.post("/assignments")
    def store_assignments(payload: SyncRequest) -> Dict[str, Any]:
        """Replace the caller's assignments with the posted batch."""
        email = require_email(payload.email)
        if payload.assignments is None:
            raise ValidationError("Assignments array is required")
        items = [AssignmentItem(**a.model_dump()) for a in payload.assignments]
        count = sync_assignments(email, items, payload.extracted_at)
        return {"success": True, "message": f"Received {count} assignments", "count": count}

    @router.get("/assignments", response_model=AssignmentsResponse)
    def list_assignments(email: Optional[str] = None) -> AssignmentsResponse:
        rows = get_assignments_by_email(email) if email else get_all_assignments()
        assignments = [AssignmentResponse.model_validate(r) for r in rows]
        return AssignmentsResponse(count=len(assignments), assignments=assignments)

    return router
