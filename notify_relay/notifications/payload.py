"""Build the push message sent for a notification record."""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Mapping
from typing import Any

from notify_relay.notifications.contracts import AndroidEnvelope, ApnsEnvelope, NotificationRecord, PushMessage
from notify_relay.notifications.templates import NotificationTemplate

logger = logging.getLogger(__name__)

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"

# Keys the relay sets itself; caller payload cannot override them.
RESERVED_DATA_KEYS = frozenset({"id", "type", "actionUrl", "imageUrl", "channelId", "click_action"})
# Keys FCM refuses in the data payload.
_FCM_FORBIDDEN_KEYS = frozenset({"from", "notification", "message_type", "collapse_key"})
_FCM_FORBIDDEN_PREFIXES = ("google.", "gcm.")


def coerce_text(value: Any) -> str:
  """Convert a payload value to the text form the data channel requires."""
  if value is None:
    return ""
  if isinstance(value, str):
    return value
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, datetime.datetime):
    return value.isoformat()
  if isinstance(value, Mapping | list | tuple):
    return json.dumps(value, default=str, separators=(",", ":"), sort_keys=True)
  return str(value)


def text_payload(payload: Mapping[str, Any] | None) -> dict[str, str]:
  """Flatten a free-form payload into text-coerced string keys and values.

  Keys FCM would reject are dropped with a warning instead of failing the
  whole send.
  """
  if not payload:
    return {}

  coerced: dict[str, str] = {}
  for raw_key, value in payload.items():
    key = str(raw_key)
    if key in _FCM_FORBIDDEN_KEYS or key.startswith(_FCM_FORBIDDEN_PREFIXES):
      logger.warning("Dropping reserved data key=%s from notification payload", key)
      continue
    coerced[key] = coerce_text(value)
  return coerced


def build_push_message(record: NotificationRecord, template: NotificationTemplate) -> PushMessage:
  """Combine a record with its template into one logical message."""
  title = record.title or template.default_title
  body = record.body or template.default_body
  type_tag = record.type or ""

  data = {key: value for key, value in text_payload(record.data).items() if key not in RESERVED_DATA_KEYS}
  data.update(
    {
      "id": record.id,
      "type": type_tag,
      "actionUrl": record.action_url or "",
      "imageUrl": record.image_url or "",
      "channelId": template.channel_id,
      "click_action": CLICK_ACTION,
    }
  )

  android = AndroidEnvelope(priority=template.android_priority, channel_id=template.channel_id, image_url=record.image_url)
  apns = ApnsEnvelope(priority=template.apns_priority, analytics_label=_analytics_label(type_tag), image_url=record.image_url)
  return PushMessage(title=title, body=body, data=data, android=android, apns=apns, image_url=record.image_url)


def _analytics_label(type_tag: str) -> str:
  """FCM analytics labels allow only [a-zA-Z0-9-_.~%] up to 50 characters."""
  raw = f"{type_tag or 'unknown'}_notification"
  cleaned = "".join(char if char.isascii() and (char.isalnum() or char in "-_.~%") else "_" for char in raw)
  return cleaned[:50]
