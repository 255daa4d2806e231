"""Callable entry points used by the mobile client."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from notify_relay.core.logging import redact_token
from notify_relay.notifications.contracts import CallerIdentity, Internal, InvalidArgument, NotificationDraft, NotificationStore, TokenStore, Unauthenticated
from notify_relay.notifications.templates import NotificationType

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "unknown"
DEFAULT_TYPE_TAG = NotificationType.SYSTEM.tag


def _require_caller(caller: CallerIdentity | None) -> CallerIdentity:
  if caller is None or not caller.uid:
    raise Unauthenticated("User must be authenticated")
  return caller


def _is_blank(value: Any) -> bool:
  return not isinstance(value, str) or not value.strip()


def _optional_text(value: Any) -> str | None:
  return value if isinstance(value, str) and value else None


class NotificationService:
  """Token registration and direct notification writes on behalf of a caller."""

  def __init__(self, *, token_store: TokenStore, notification_store: NotificationStore) -> None:
    self._token_store = token_store
    self._notification_store = notification_store

  async def register_token(self, caller: CallerIdentity | None, *, token: Any, platform: Any = None) -> dict[str, bool]:
    """Upsert the caller's device token."""
    identity = _require_caller(caller)
    if _is_blank(token):
      raise InvalidArgument("Missing required field: token")
    resolved_platform = platform.strip() if isinstance(platform, str) and platform.strip() else DEFAULT_PLATFORM

    try:
      await self._token_store.upsert(user_id=identity.uid, token=token, platform=resolved_platform)
    except Exception as exc:
      logger.error("Error updating token user_id=%s token=%s", identity.uid, redact_token(token), exc_info=True)
      raise Internal("Failed to update token") from exc

    logger.info("Registered token user_id=%s platform=%s", identity.uid, resolved_platform)
    return {"success": True}

  async def send_direct_notification(
    self, caller: CallerIdentity | None, *, user_id: Any, title: Any, body: Any, type: Any = None, payload: Any = None, action_url: Any = None, image_url: Any = None
  ) -> dict[str, Any]:
    """Write a notification record for a target user; the write triggers delivery."""
    identity = _require_caller(caller)
    missing = [name for name, value in (("userId", user_id), ("title", title), ("body", body)) if _is_blank(value)]
    if missing:
      raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")
    if "/" in user_id:
      raise InvalidArgument("userId must not contain '/'")
    if payload is not None and not isinstance(payload, Mapping):
      raise InvalidArgument("notificationData must be an object")

    draft = NotificationDraft(
      title=title,
      body=body,
      type=type if isinstance(type, str) and type else DEFAULT_TYPE_TAG,
      data=dict(payload or {}),
      action_url=_optional_text(action_url),
      image_url=_optional_text(image_url),
    )

    try:
      notification_id = await self._notification_store.create(user_id=user_id, draft=draft)
    except Exception as exc:
      logger.error("Error sending direct notification sender=%s target=%s", identity.uid, user_id, exc_info=True)
      raise Internal("Failed to send notification") from exc

    logger.info("Direct notification created notification_id=%s sender=%s target=%s type=%s", notification_id, identity.uid, user_id, draft.type)
    return {"success": True, "notificationId": notification_id}
