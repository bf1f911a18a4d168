from __future__ import annotations

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging

from app.core.config import get_settings

logger = logging.getLogger(__name__)

_initialized = False


def _ensure_initialized() -> None:
    global _initialized
    if _initialized:
        return
    settings = get_settings()
    sa_path: Optional[str] = settings.fcm_service_account_json_path
    if not sa_path:
        # Allow running without FCM configured
        return
    if not firebase_admin._apps:  # type: ignore[attr-defined]
        cred = credentials.Certificate(sa_path)
        firebase_admin.initialize_app(cred)
    _initialized = True


def _data(data: Optional[dict]) -> dict:
    # FCM data payload는 문자열 값만 허용
    return {k: "" if v is None else str(v) for k, v in (data or {}).items()}


def send_to_token(token: str, title: str, body: str, data: Optional[dict] = None) -> Optional[str]:
    """Send a notification to a single FCM token. Returns message ID or None if FCM not configured."""
    _ensure_initialized()
    if not firebase_admin._apps:  # type: ignore[attr-defined]
        return None
    message = messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data=_data(data),
    )
    return messaging.send(message)


def send_to_topic(topic: str, title: str, body: str, data: Optional[dict] = None) -> Optional[str]:
    _ensure_initialized()
    if not firebase_admin._apps:  # type: ignore[attr-defined]
        return None
    message = messaging.Message(
        topic=topic,
        notification=messaging.Notification(title=title, body=body),
        data=_data(data),
    )
    return messaging.send(message)


def try_send_to_token(token: Optional[str], title: str, body: str, data: Optional[dict] = None) -> Optional[str]:
    """커밋 이후 호출용: 실패해도 요청은 성공으로 둔다."""
    if not token:
        return None
    try:
        return send_to_token(token, title, body, data)
    except Exception:  # noqa: BLE001
        logger.exception("FCM push to device failed")
        return None


def try_send_to_topic(topic: str, title: str, body: str, data: Optional[dict] = None) -> Optional[str]:
    try:
        return send_to_topic(topic, title, body, data)
    except Exception:  # noqa: BLE001
        logger.exception("FCM publish to topic %s failed", topic)
        return None
