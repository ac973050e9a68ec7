from .composer import NotificationComposer, build_composer

__all__ = ["NotificationComposer", "build_composer"]
