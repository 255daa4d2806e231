"""Push gateway implementations."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from starlette.concurrency import run_in_threadpool

from notify_relay.core.logging import redact_token
from notify_relay.notifications.contracts import InvalidTokenError, MalformedMessageError, PushGateway, PushMessage, TransientDeliveryError

logger = logging.getLogger(__name__)


def to_fcm_message(message: PushMessage, token: str) -> messaging.Message:
  """Translate a logical push message into an FCM message for one token."""
  android = messaging.AndroidConfig(
    priority=message.android.priority,
    data=dict(message.data),
    notification=messaging.AndroidNotification(sound=message.android.sound, channel_id=message.android.channel_id, image=message.android.image_url),
  )
  aps = messaging.Aps(badge=message.apns.badge, sound=message.apns.sound, content_available=message.apns.content_available)
  apns = messaging.APNSConfig(
    headers={"apns-priority": message.apns.priority},
    payload=messaging.APNSPayload(aps=aps),
    fcm_options=messaging.APNSFCMOptions(analytics_label=message.apns.analytics_label, image=message.apns.image_url),
  )
  return messaging.Message(
    token=token,
    notification=messaging.Notification(title=message.title, body=message.body, image=message.image_url),
    data=dict(message.data),
    android=android,
    apns=apns,
  )


class FcmPushGateway(PushGateway):
  """Firebase Cloud Messaging gateway backed by the Admin SDK."""

  def __init__(self, *, app: firebase_admin.App, dry_run: bool = False) -> None:
    self._app = app
    self._dry_run = dry_run

  async def send(self, message: PushMessage, token: str) -> str:
    """Send to one token, mapping SDK failures onto the delivery error types."""
    fcm_message = to_fcm_message(message, token)
    try:
      return await run_in_threadpool(messaging.send, fcm_message, dry_run=self._dry_run, app=self._app)
    except (messaging.UnregisteredError, messaging.SenderIdMismatchError) as exc:
      raise InvalidTokenError(token, f"{type(exc).__name__}: {exc}") from exc
    except firebase_exceptions.FirebaseError as exc:
      raise TransientDeliveryError(token, f"{exc.code}: {exc}") from exc
    except ValueError as exc:
      # The SDK validates the message locally before sending.
      raise MalformedMessageError(token, f"invalid message: {exc}") from exc


class NullPushGateway(PushGateway):
  """No-op gateway used when push delivery is disabled."""

  async def send(self, message: PushMessage, token: str) -> str:
    logger.debug("Push delivery disabled; dropping message title=%s token=%s", message.title, redact_token(token))
    return "dropped"
