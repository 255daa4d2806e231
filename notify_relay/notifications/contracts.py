"""Contracts shared by the notification pipeline components."""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class NotificationDraft:
  """Fields supplied by a writer before storage assigns an id and timestamp."""

  title: str
  body: str
  type: str
  data: dict[str, Any] = field(default_factory=dict)
  action_url: str | None = None
  image_url: str | None = None


@dataclass(frozen=True)
class NotificationRecord:
  """A stored notification document as seen by the dispatch trigger."""

  id: str
  type: str | None
  title: str | None = None
  body: str | None = None
  data: dict[str, Any] = field(default_factory=dict)
  action_url: str | None = None
  image_url: str | None = None
  timestamp: datetime.datetime | None = None
  is_read: bool = False
  token: str | None = None
  recipient_id: str | None = None

  @classmethod
  def from_document(cls, document_id: str, fields: Mapping[str, Any]) -> NotificationRecord:
    """Build a record from raw Firestore document fields.

    Records can be inserted by any collaborator, so text fields holding
    anything but a non-empty string are treated as absent.
    """
    data = fields.get("data")
    timestamp = fields.get("timestamp")
    return cls(
      id=document_id,
      type=_text_field(fields, "type"),
      title=_text_field(fields, "title"),
      body=_text_field(fields, "body"),
      data=dict(data) if isinstance(data, Mapping) else {},
      action_url=_text_field(fields, "actionUrl"),
      image_url=_text_field(fields, "imageUrl"),
      timestamp=timestamp if isinstance(timestamp, datetime.datetime) else None,
      is_read=fields.get("isRead") is True,
      token=_text_field(fields, "token"),
      recipient_id=_text_field(fields, "recipientId"),
    )


def _text_field(fields: Mapping[str, Any], name: str) -> str | None:
  value = fields.get(name)
  if isinstance(value, str) and value.strip():
    return value
  return None


@dataclass(frozen=True)
class AndroidEnvelope:
  """Android-specific delivery options."""

  priority: str
  channel_id: str
  sound: str = "default"
  image_url: str | None = None


@dataclass(frozen=True)
class ApnsEnvelope:
  """APNs-specific delivery options."""

  priority: str
  badge: int = 1
  sound: str = "default"
  content_available: bool = True
  analytics_label: str | None = None
  image_url: str | None = None


@dataclass(frozen=True)
class PushMessage:
  """A single logical message, sent once per target token."""

  title: str
  body: str
  data: dict[str, str]
  android: AndroidEnvelope
  apns: ApnsEnvelope
  image_url: str | None = None


@dataclass(frozen=True)
class DispatchResult:
  """Per-notification tally of a fan-out."""

  success: int
  failure: int
  total_targets: int

  @classmethod
  def empty(cls) -> DispatchResult:
    return cls(success=0, failure=0, total_targets=0)

  def as_dict(self) -> dict[str, int]:
    return {"success": self.success, "failures": self.failure, "totalTokens": self.total_targets}


class NotificationError(Exception):
  """Base class for all notification pipeline failures."""


class DeliveryFailure(NotificationError):
  """A send to one specific token failed."""

  def __init__(self, token: str, reason: str) -> None:
    super().__init__(reason)
    self.token = token
    self.reason = reason


class InvalidTokenError(DeliveryFailure):
  """The gateway reported the token as unregistered or owned by another sender."""


class TransientDeliveryError(DeliveryFailure):
  """The gateway failed for a reason not tied to the token itself."""


class MalformedMessageError(DeliveryFailure):
  """The SDK rejected the message before sending it; the token is not at fault."""


class CleanupFailure(NotificationError):
  """A batched delete failed."""


class CallableError(NotificationError):
  """An error surfaced to the caller of a callable entry point."""

  status = "INTERNAL"
  http_status = 500

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message

  def as_envelope(self) -> dict[str, dict[str, str]]:
    return {"error": {"status": self.status, "message": self.message}}


class Unauthenticated(CallableError):
  status = "UNAUTHENTICATED"
  http_status = 401


class InvalidArgument(CallableError):
  status = "INVALID_ARGUMENT"
  http_status = 400


class Internal(CallableError):
  """Opaque failure; the underlying cause is only logged server-side."""

  status = "INTERNAL"
  http_status = 500


@dataclass(frozen=True)
class CallerIdentity:
  """A verified Firebase caller."""

  uid: str
  claims: dict[str, Any] = field(default_factory=dict)


class PushGateway(Protocol):
  """Delivery contract for the push-messaging service."""

  async def send(self, message: PushMessage, token: str) -> str:
    """Send a message to one token and return the gateway message id."""


class TokenStore(Protocol):
  """Storage contract for per-user device tokens."""

  async def upsert(self, *, user_id: str, token: str, platform: str) -> None: ...

  async def list_tokens(self, *, user_id: str) -> list[str]: ...

  async def delete_tokens(self, *, user_id: str, tokens: Sequence[str]) -> int: ...


class NotificationStore(Protocol):
  """Storage contract for notification records."""

  async def create(self, *, user_id: str, draft: NotificationDraft) -> str: ...

  async def delete_record(self, *, path: str) -> None: ...

  async def list_user_ids(self) -> list[str]: ...

  async def delete_older_than(self, *, user_id: str, cutoff: datetime.datetime) -> int: ...

  async def purge_user(self, *, user_id: str) -> int: ...
