"""Notification persistence and push delivery."""

from .dispatcher import DeliveryResult, NotificationContent, NotificationDispatcher
from .push import FirebasePushGateway, PushGateway

__all__ = [
    "DeliveryResult",
    "FirebasePushGateway",
    "NotificationContent",
    "NotificationDispatcher",
    "PushGateway",
]
