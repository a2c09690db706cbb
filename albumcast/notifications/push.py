"""Push delivery gateways."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging

logger = logging.getLogger(__name__)


class PushGateway(ABC):
    """Delivers a push message to one device."""

    @abstractmethod
    def send(
        self, device_token: str, title: str, body: str, data: Dict[str, str]
    ) -> Optional[str]:
        """Send a message and return the provider's delivery id."""


class FirebasePushGateway(PushGateway):
    """Firebase Cloud Messaging gateway."""

    APP_NAME = "albumcast"

    def __init__(self, credentials_path: Optional[str] = None, app: Any = None) -> None:
        """Initialize the gateway.

        Args:
            credentials_path: Service account JSON used to initialize a Firebase app
            app: Existing Firebase app (takes precedence over credentials_path)
        """
        if app is None:
            if not credentials_path:
                raise ValueError("credentials_path or app is required")
            app = firebase_admin.initialize_app(
                credentials.Certificate(credentials_path), name=self.APP_NAME
            )
        self._app = app

    def send(
        self, device_token: str, title: str, body: str, data: Dict[str, str]
    ) -> Optional[str]:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data,
            android=messaging.AndroidConfig(priority="high"),
            token=device_token,
        )
        return messaging.send(message, app=self._app)
