"""
Per-plugin API for insights. Mounted at /api/.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter

from blinky.plugins.assignments.api import serialize_assignments
from .service import get_insights


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(tags=["Insights"])

    @router.get("/insights/{email}")
    def insights(email: str) -> Dict[str, Any]:
        """Assignments plus a screen-time reality check for one identity."""
        result = get_insights(email, app.composer)
        result["assignments"] = serialize_assignments(result["assignments"])
        return result

    return router
