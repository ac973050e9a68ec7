"""
Per-plugin API for friends. Mounted at /api/friends/.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from blinky.api.schemas import CamelModel, UTCDateTime
from blinky.plugins.users.service import require_email
from .service import add_friend, get_friends, get_leaderboard, remove_friend


class FriendRequest(CamelModel):
    user_email: Optional[str] = None
    friend_email: Optional[str] = None


class FriendResponse(CamelModel):
    email: str
    since: Optional[UTCDateTime] = None


class FriendsResponse(BaseModel):
    count: int
    friends: List[FriendResponse]


def get_router(app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api."""
    router = APIRouter(prefix="/friends", tags=["Friends"])

    @router.post("/add")
    def add(payload: FriendRequest) -> Dict[str, Any]:
        return add_friend(payload.user_email, payload.friend_email)

    @router.post("/remove")
    def remove(payload: FriendRequest) -> Dict[str, Any]:
        return remove_friend(payload.user_email, payload.friend_email)

    @router.get("/leaderboard/{email}")
    def leaderboard(email: str) -> Dict[str, Any]:
        """Screen-time ranking across every reporting identity; flags the caller's entry."""
        entries = get_leaderboard(require_email(email))
        return {"count": len(entries), "leaderboard": entries}

    @router.get("/{email}", response_model=FriendsResponse)
    def friends(email: str) -> FriendsResponse:
        rows = [FriendResponse(**f) for f in get_friends(require_email(email))]
        return FriendsResponse(count=len(rows), friends=rows)

    return router
