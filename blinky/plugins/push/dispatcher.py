"""
Push dispatcher: resolves device tokens, drops malformed ones, and submits batches through a gateway.
"""
import logging
from typing import Any, Dict, List, Optional

from blinky.core.errors import NotFoundError, ValidationError
from blinky.plugins.push.expo import ExpoPushGateway, PushGateway, PushMessage
from blinky.plugins.users.service import get_push_tokens


class PushDispatcher:
    def __init__(self, gateway: PushGateway):
        self.gateway = gateway
        self.logger = logging.getLogger(self.__class__.__name__)

    def send(
        self,
        title: Optional[str],
        body: Optional[str],
        data: Optional[Dict[str, Any]] = None,
        email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send to one identity's device (email given) or to every registered device.
        Malformed tokens are skipped with a warning; count is the number of messages submitted.
        """
        if not title or not body:
            raise ValidationError("Title and body are required")

        tokens = get_push_tokens(email)
        if not tokens:
            raise NotFoundError("No registered push tokens found")

        messages = []
        for token in tokens:
            if not self.gateway.is_push_token(token):
                self.logger.warning(f"Invalid push token: {token}")
                continue
            messages.append(PushMessage(to=token, title=title, body=body, data=data or {}))

        tickets = self.dispatch(messages)
        return {"success": True, "count": len(messages), "tickets": tickets}

    def send_to_address(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Single-recipient send used by the reminder loop."""
        if not self.gateway.is_push_token(token):
            raise ValidationError(f"Invalid push token: {token}")
        return self.dispatch([PushMessage(to=token, title=title, body=body, data=data or {})])

    def dispatch(self, messages: List[PushMessage]) -> List[Dict[str, Any]]:
        """Submit batches sequentially; tickets come back in submission order."""
        tickets: List[Dict[str, Any]] = []
        for chunk in self.gateway.chunk_messages(messages):
            chunk_tickets = self.gateway.send_batch(chunk)
            for message, ticket in zip(chunk, chunk_tickets):
                if ticket.get("status") == "error":
                    self.logger.warning(
                        f"Push to {message.to} failed: {ticket.get('message')} {ticket.get('details') or ''}".rstrip()
                    )
            tickets.extend(chunk_tickets)
        return tickets


def build_dispatcher(config_data: Dict[str, Any]) -> PushDispatcher:
    """Dispatcher backed by the Expo gateway configured under push:."""
    return PushDispatcher(ExpoPushGateway(config_data.get("push") or {}))
