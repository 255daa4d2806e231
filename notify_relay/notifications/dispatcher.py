"""Dispatch trigger: turns a newly created notification record into push sends."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from notify_relay.core.logging import redact_token
from notify_relay.notifications.contracts import DeliveryFailure, DispatchResult, MalformedMessageError, NotificationRecord, NotificationStore, PushGateway, PushMessage, TokenStore, TransientDeliveryError
from notify_relay.notifications.janitor import TokenJanitor
from notify_relay.notifications.paths import NOTIFICATIONS_COLLECTION, USERS_COLLECTION, UnsupportedDocumentPath, parse_document_path
from notify_relay.notifications.payload import build_push_message
from notify_relay.notifications.templates import resolve_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationCreatedEvent:
  """A document-created notice for a notification record."""

  path: str
  fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FanOutOutcome:
  delivered: list[str]
  failures: list[DeliveryFailure]


class NotificationDispatcher:
  """Resolves targets, builds the message, fans out and records the outcome.

  The trigger may be redelivered, so a record can be dispatched more than
  once; a repeated push is accepted.
  """

  def __init__(self, *, token_store: TokenStore, notification_store: NotificationStore, gateway: PushGateway, janitor: TokenJanitor, outbox_collection: str = "chat_notifications") -> None:
    self._token_store = token_store
    self._notification_store = notification_store
    self._gateway = gateway
    self._janitor = janitor
    self._outbox_collection = outbox_collection

  async def dispatch(self, event: NotificationCreatedEvent) -> DispatchResult:
    """Route an event to the variant matching the record's shape."""
    segments = parse_document_path(event.path)
    record = NotificationRecord.from_document(segments[-1], event.fields)

    if record.token or (len(segments) == 2 and segments[0] == self._outbox_collection):
      return await self.dispatch_outbox(path="/".join(segments), record=record)

    if len(segments) == 4 and segments[0] == USERS_COLLECTION and segments[2] == NOTIFICATIONS_COLLECTION:
      return await self.dispatch_to_user(user_id=segments[1], record=record)

    raise UnsupportedDocumentPath(f"Unsupported notification path: {event.path}")

  async def dispatch_to_user(self, *, user_id: str, record: NotificationRecord) -> DispatchResult:
    """Send a user-scoped record to every token registered for its owner."""
    tokens = await self._token_store.list_tokens(user_id=user_id)
    if not tokens:
      logger.info("No FCM tokens found for user_id=%s notification_id=%s", user_id, record.id)
      return DispatchResult.empty()

    message = build_push_message(record, resolve_template(record.type))
    outcome = await self._fan_out(message, tokens)

    result = DispatchResult(success=len(outcome.delivered), failure=len(outcome.failures), total_targets=len(tokens))
    logger.info("Notification sent notification_id=%s user_id=%s: %d success, %d failures", record.id, user_id, result.success, result.failure)

    prunable = _prunable(outcome.failures)
    if prunable:
      await self._janitor.prune_tokens(user_id=user_id, tokens=prunable)

    return result

  async def dispatch_outbox(self, *, path: str, record: NotificationRecord) -> DispatchResult:
    """Send a record to its attached token and delete the record at `path` once delivered."""
    if not record.token:
      logger.warning("Outbox notification_id=%s has no token; nothing to send", record.id)
      return DispatchResult.empty()

    message = build_push_message(record, resolve_template(record.type))
    outcome = await self._fan_out(message, [record.token])

    if outcome.failures:
      prunable = _prunable(outcome.failures)
      if record.recipient_id and prunable:
        await self._janitor.prune_tokens(user_id=record.recipient_id, tokens=prunable)
      return DispatchResult(success=0, failure=1, total_targets=1)

    try:
      await self._notification_store.delete_record(path=path)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed deleting delivered record path=%s: %s", path, exc, exc_info=True)

    logger.info("Outbox notification sent notification_id=%s", record.id)
    return DispatchResult(success=1, failure=0, total_targets=1)

  async def _fan_out(self, message: PushMessage, tokens: Sequence[str]) -> FanOutOutcome:
    """Send once per token concurrently; one failed send never affects another."""
    results = await asyncio.gather(*(self._gateway.send(message, token) for token in tokens), return_exceptions=True)

    delivered: list[str] = []
    failures: list[DeliveryFailure] = []
    for token, result in zip(tokens, results, strict=True):
      if isinstance(result, DeliveryFailure):
        failures.append(result)
      elif isinstance(result, Exception):
        failures.append(TransientDeliveryError(token, f"{type(result).__name__}: {result}"))
      elif isinstance(result, BaseException):
        raise result
      else:
        delivered.append(token)
        continue
      logger.error("Failed to send to token=%s: %s", redact_token(token), failures[-1].reason)

    return FanOutOutcome(delivered=delivered, failures=failures)


def _prunable(failures: Sequence[DeliveryFailure]) -> list[str]:
  """Tokens to remove after a fan-out; a message the SDK rejected says nothing about its tokens."""
  return [failure.token for failure in failures if not isinstance(failure, MalformedMessageError)]
