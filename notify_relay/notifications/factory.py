"""Factory helpers for the notification pipeline."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from notify_relay.config import Settings
from notify_relay.core.firebase import FirebaseClients
from notify_relay.notifications.contracts import PushGateway
from notify_relay.notifications.dispatcher import NotificationDispatcher
from notify_relay.notifications.janitor import TokenJanitor
from notify_relay.notifications.notification_repo import FirestoreNotificationRepository
from notify_relay.notifications.push_sender import FcmPushGateway, NullPushGateway
from notify_relay.notifications.service import NotificationService
from notify_relay.notifications.sweeper import RetentionSweeper
from notify_relay.notifications.token_repo import FirestoreTokenRepository


@dataclass(frozen=True)
class NotificationComponents:
  """Every pipeline component, wired against the same stores."""

  service: NotificationService
  dispatcher: NotificationDispatcher
  janitor: TokenJanitor
  sweeper: RetentionSweeper


def build_push_gateway(settings: Settings, clients: FirebaseClients) -> PushGateway:
  """Return the FCM gateway, or a no-op gateway when push is disabled."""
  if not settings.push_enabled:
    return NullPushGateway()
  return FcmPushGateway(app=clients.app, dry_run=settings.push_dry_run)


def build_notification_components(settings: Settings, clients: FirebaseClients, *, gateway: PushGateway | None = None) -> NotificationComponents:
  """Construct the pipeline from configuration and explicit Firebase handles."""
  token_store = FirestoreTokenRepository(client=clients.firestore, storage_mode=settings.token_storage, batch_size=settings.batch_size)
  notification_store = FirestoreNotificationRepository(client=clients.firestore, batch_size=settings.batch_size)
  janitor = TokenJanitor(token_store=token_store, notification_store=notification_store)
  dispatcher = NotificationDispatcher(
    token_store=token_store, notification_store=notification_store, gateway=gateway or build_push_gateway(settings, clients), janitor=janitor, outbox_collection=settings.chat_outbox_collection
  )
  return NotificationComponents(
    service=NotificationService(token_store=token_store, notification_store=notification_store),
    dispatcher=dispatcher,
    janitor=janitor,
    sweeper=RetentionSweeper(notification_store=notification_store, retention=datetime.timedelta(days=settings.retention_days)),
  )
