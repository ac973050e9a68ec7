"""
Push gateway backends. The gateway accepts batches of messages and answers with one
delivery ticket per message, in order.
"""
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Any, Dict, List, Optional
import logging
import re

import requests

from blinky.core.errors import ExternalServiceError

PushMessage = namedtuple(
    "PushMessage",
    [
        "to",     # device push token
        "title",
        "body",
        "sound",  # "default" or None for silent
        "data",   # dict delivered to the app alongside the notification
    ],
    defaults=(None, None, None, "default", None),
)

_UUID_TOKEN_RE = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


def is_push_token(token: Any) -> bool:
    """True for ExponentPushToken[...], ExpoPushToken[...] or a bare device UUID."""
    if not isinstance(token, str):
        return False
    if (token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")) and token.endswith("]"):
        return True
    return bool(_UUID_TOKEN_RE.match(token))


class PushGateway(ABC):
    """Base class for push delivery providers"""

    batch_size = 100

    def is_push_token(self, token: Any) -> bool:
        return is_push_token(token)

    def chunk_messages(self, messages: List[PushMessage]) -> List[List[PushMessage]]:
        """Split messages into gateway-sized batches, preserving order."""
        size = max(1, self.batch_size)
        return [messages[i:i + size] for i in range(0, len(messages), size)]

    @abstractmethod
    def send_batch(self, messages: List[PushMessage]) -> List[Dict[str, Any]]:
        """Submit one batch. Returns one ticket per message; raises ExternalServiceError if the batch fails."""
        pass


class ExpoPushGateway(PushGateway):
    """Expo push service (https://docs.expo.dev/push-notifications/sending-notifications/)."""

    DEFAULT_URL = "https://exp.host/--/api/v2/push/send"
    MAX_BATCH_SIZE = 100

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)
        self.api_url = self.config.get("api_url") or self.DEFAULT_URL
        self.timeout = float(self.config.get("timeout") or 15)
        self.batch_size = min(int(self.config.get("batch_size") or self.MAX_BATCH_SIZE), self.MAX_BATCH_SIZE)
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        })
        access_token = self.config.get("access_token")
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"

    @staticmethod
    def _to_payload(message: PushMessage) -> Dict[str, Any]:
        payload = {
            "to": message.to,
            "title": message.title,
            "body": message.body,
            "data": message.data or {},
        }
        if message.sound:
            payload["sound"] = message.sound
        return payload

    def send_batch(self, messages: List[PushMessage]) -> List[Dict[str, Any]]:
        if not messages:
            return []
        payload = [self._to_payload(m) for m in messages]
        try:
            self.logger.debug(f"Submitting {len(payload)} push message(s) to {self.api_url}")
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Network error sending push batch: {e}")
            raise ExternalServiceError(f"Push gateway unreachable: {e}") from e

        if response.status_code == 401:
            raise ExternalServiceError("Push gateway rejected the access token")
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ExternalServiceError(f"Push gateway returned HTTP {response.status_code}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ExternalServiceError("Push gateway returned invalid JSON") from e

        if body.get("errors"):
            first = body["errors"][0] or {}
            raise ExternalServiceError(f"Push gateway error: {first.get('message', 'unknown error')}")

        tickets = body.get("data")
        if not isinstance(tickets, list) or len(tickets) != len(messages):
            raise ExternalServiceError("Push gateway returned an unexpected ticket list")
        return tickets
