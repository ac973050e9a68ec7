from .dispatcher import PushDispatcher, build_dispatcher
from .expo import ExpoPushGateway, PushGateway, PushMessage, is_push_token

__all__ = ["PushDispatcher", "build_dispatcher", "ExpoPushGateway", "PushGateway", "PushMessage", "is_push_token"]
