"""In-memory doubles for the notification stores and the push gateway."""

from __future__ import annotations

import datetime
import itertools
from collections.abc import Sequence
from typing import Any

from notify_relay.config import Settings
from notify_relay.notifications.contracts import InvalidTokenError, NotificationDraft, PushMessage
from notify_relay.notifications.dispatcher import NotificationDispatcher
from notify_relay.notifications.factory import NotificationComponents
from notify_relay.notifications.janitor import TokenJanitor
from notify_relay.notifications.paths import CURRENT_TOKEN_DOC_ID, parse_document_path, token_doc_id
from notify_relay.notifications.service import NotificationService
from notify_relay.notifications.sweeper import RetentionSweeper


class InMemoryStore:
  """Token and notification storage with Firestore-like semantics, held in dicts."""

  def __init__(self, *, multi_token: bool = True) -> None:
    self.multi_token = multi_token
    self.tokens: dict[str, dict[str, dict[str, Any]]] = {}
    self.notifications: dict[str, dict[str, dict[str, Any]]] = {}
    self.outbox: dict[str, dict[str, Any]] = {}
    self.now = datetime.datetime(2026, 10, 17, 12, 0, tzinfo=datetime.timezone.utc)
    self._ids = itertools.count(1)

  def add_token(self, user_id: str, token: str, platform: str = "android") -> None:
    doc_id = token_doc_id(token) if self.multi_token else CURRENT_TOKEN_DOC_ID
    self.tokens.setdefault(user_id, {})[doc_id] = {"token": token, "platform": platform, "updatedAt": self.now}

  def add_notification(self, user_id: str, notification_id: str, *, timestamp: datetime.datetime, **fields: Any) -> None:
    self.notifications.setdefault(user_id, {})[notification_id] = {"id": notification_id, "timestamp": timestamp, **fields}

  async def upsert(self, *, user_id: str, token: str, platform: str) -> None:
    self.add_token(user_id, token, platform)

  async def list_tokens(self, *, user_id: str) -> list[str]:
    return [fields["token"] for fields in self.tokens.get(user_id, {}).values() if fields.get("token")]

  async def delete_tokens(self, *, user_id: str, tokens: Sequence[str]) -> int:
    user_tokens = self.tokens.get(user_id, {})
    doomed = [doc_id for doc_id, fields in user_tokens.items() if fields.get("token") in set(tokens)]
    for doc_id in doomed:
      del user_tokens[doc_id]
    return len(doomed)

  async def create(self, *, user_id: str, draft: NotificationDraft) -> str:
    notification_id = f"n{next(self._ids)}"
    self.add_notification(
      user_id, notification_id, timestamp=self.now, title=draft.title, body=draft.body, type=draft.type, data=dict(draft.data), isRead=False, actionUrl=draft.action_url, imageUrl=draft.image_url
    )
    return notification_id

  async def delete_record(self, *, path: str) -> None:
    segments = parse_document_path(path)
    if len(segments) == 2:
      self.outbox.pop(segments[1], None)
    else:
      self.notifications.get(segments[1], {}).pop(segments[3], None)

  async def list_user_ids(self) -> list[str]:
    return sorted(set(self.tokens) | set(self.notifications))

  async def delete_older_than(self, *, user_id: str, cutoff: datetime.datetime) -> int:
    user_notifications = self.notifications.get(user_id, {})
    doomed = [notification_id for notification_id, fields in user_notifications.items() if fields["timestamp"] < cutoff]
    for notification_id in doomed:
      del user_notifications[notification_id]
    return len(doomed)

  async def purge_user(self, *, user_id: str) -> int:
    deleted = len(self.notifications.pop(user_id, {})) + len(self.tokens.pop(user_id, {}))
    return deleted


class RecordingGateway:
  """Push gateway double that records every send and fails for chosen tokens."""

  def __init__(self, *, failing: Sequence[str] = ()) -> None:
    self.sent: list[tuple[str, PushMessage]] = []
    self.failing = set(failing)

  async def send(self, message: PushMessage, token: str) -> str:
    self.sent.append((token, message))
    if token in self.failing:
      raise InvalidTokenError(token, "Requested entity was not found.")
    return f"projects/test/messages/{len(self.sent)}"


def build_components(store: InMemoryStore, gateway: RecordingGateway, *, retention_days: int = 30) -> NotificationComponents:
  janitor = TokenJanitor(token_store=store, notification_store=store)
  return NotificationComponents(
    service=NotificationService(token_store=store, notification_store=store),
    dispatcher=NotificationDispatcher(token_store=store, notification_store=store, gateway=gateway, janitor=janitor),
    janitor=janitor,
    sweeper=RetentionSweeper(notification_store=store, retention=datetime.timedelta(days=retention_days)),
  )


def make_settings(**overrides: Any) -> Settings:
  values: dict[str, Any] = {
    "environment": "test",
    "debug": False,
    "log_level": "INFO",
    "log_dir": None,
    "log_max_bytes": 5242880,
    "log_backup_count": 10,
    "log_http_4xx": False,
    "firebase_project_id": "demo-project",
    "firebase_service_account_json_path": None,
    "push_enabled": True,
    "push_dry_run": False,
    "token_storage": "collection",
    "retention_days": 30,
    "sweep_interval_hours": 24,
    "batch_size": 500,
    "event_secret": "event-secret",
    "chat_outbox_collection": "chat_notifications",
  }
  values.update(overrides)
  return Settings(**values)


