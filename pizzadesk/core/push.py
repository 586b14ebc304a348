"""
Push delivery providers

The dispatcher only sees `send(token, payload) -> PushResult`. Delivery is
best-effort: providers report failures in the result instead of raising.
"""
import asyncio
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from config import (
    APP_BASE_URL, FCM_TIMEOUT_SECONDS, FIREBASE_CLIENT_EMAIL, FIREBASE_PRIVATE_KEY,
    FIREBASE_PROJECT_ID, PUSH_ICON
)
from pizzadesk.core.i18n_logger import get_i18n_logger

logger = get_i18n_logger(__name__)

INVALID_TOKEN = "invalid-token"
UNKNOWN_ERROR = "unknown"

FIREBASE_APP_NAME = "pizzadesk-push"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass
class PushPayload:
    title: str
    body: str
    url: str = "/"
    tag: Optional[str] = None
    icon: str = field(default=PUSH_ICON)


@dataclass
class PushResult:
    success: bool
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def token_invalid(self) -> bool:
        return self.error == INVALID_TOKEN


class PushProvider(Protocol):
    async def send(self, token: str, payload: PushPayload) -> PushResult:
        ...


def _short(token: str) -> str:
    return f"{token[:15]}..."


def init_firebase_app(
    project_id: str,
    client_email: str,
    private_key: str,
    timeout: float = FCM_TIMEOUT_SECONDS,
) -> firebase_admin.App:
    """
    Initialize (once) the Firebase app used for messaging.

    The service account credential refreshes its own OAuth access tokens.
    """
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass  # not initialized yet

    credential = credentials.Certificate({
        "type": "service_account",
        "project_id": project_id,
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": GOOGLE_TOKEN_URI,
    })
    app = firebase_admin.initialize_app(
        credential,
        {"projectId": project_id, "httpTimeout": timeout},
        name=FIREBASE_APP_NAME,
    )
    logger.info("push.provider.initialized", project=project_id)
    return app


class FcmPushProvider:
    """
    Firebase Cloud Messaging sender (Admin SDK).

    Sends both a notification block and a data block so the message is shown
    whether the web app is in the foreground or in the background.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None, base_url: str = APP_BASE_URL):
        self.app = app
        self.base_url = base_url.rstrip("/")

    def click_link(self, url: str) -> Optional[str]:
        """Absolute https link for the web-push click action; FCM rejects anything else"""
        if url.startswith("https://"):
            return url
        if self.base_url.startswith("https://"):
            return f"{self.base_url}/{url.lstrip('/')}"
        return None

    def build_message(self, token: str, payload: PushPayload) -> messaging.Message:
        data = {
            "title": payload.title,
            "body": payload.body,
            "icon": payload.icon,
            "url": payload.url,
        }
        if payload.tag:
            data["tag"] = payload.tag

        link = self.click_link(payload.url)
        webpush = messaging.WebpushConfig(
            headers={"Urgency": "high", "TTL": "86400"},  # 24 hours
            notification=messaging.WebpushNotification(tag=payload.tag, icon=payload.icon) if payload.tag else None,
            fcm_options=messaging.WebpushFCMOptions(link=link) if link else None,
        )

        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=payload.title, body=payload.body),
            data=data,
            webpush=webpush,
        )

    async def send(self, token: str, payload: PushPayload) -> PushResult:
        if not token:
            logger.warning("push.token.missing")
            return PushResult(False, UNKNOWN_ERROR, "No token provided")

        message = self.build_message(token, payload)
        try:
            # The SDK is blocking
            message_id = await asyncio.to_thread(messaging.send, message, app=self.app)
        except messaging.UnregisteredError:
            logger.warning("push.token.unregistered", token=_short(token))
            return PushResult(False, INVALID_TOKEN, "The device token is no longer registered")
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error("push.send.failed", token=_short(token), error=str(e))
            return PushResult(False, UNKNOWN_ERROR, str(e))

        logger.debug("push.send.success", token=_short(token), message_id=message_id)
        return PushResult(True)


class LoggingPushProvider:
    """Used when FCM is not configured: records the push in the log and reports success"""

    async def send(self, token: str, payload: PushPayload) -> PushResult:
        logger.info("push.send.skipped", token=_short(token), title=payload.title)
        return PushResult(True)


@lru_cache
def build_push_provider() -> PushProvider:
    """One provider (and one Firebase app) per process"""
    if FIREBASE_PROJECT_ID and FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY:
        app = init_firebase_app(FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL, FIREBASE_PRIVATE_KEY)
        return FcmPushProvider(app)
    logger.warning("push.provider.disabled")
    return LoggingPushProvider()
