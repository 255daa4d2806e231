"""Token and user-data cleanup."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from notify_relay.core.logging import redact_token
from notify_relay.notifications.contracts import CleanupFailure, NotificationStore, TokenStore

logger = logging.getLogger(__name__)


class TokenJanitor:
  """Removes tokens that failed delivery and all data of deleted accounts."""

  def __init__(self, *, token_store: TokenStore, notification_store: NotificationStore) -> None:
    self._token_store = token_store
    self._notification_store = notification_store

  async def prune_tokens(self, *, user_id: str, tokens: Sequence[str]) -> int:
    """Delete the listed tokens for a user; failures are logged and never raised."""
    if not tokens:
      return 0

    try:
      deleted = await self._token_store.delete_tokens(user_id=user_id, tokens=tokens)
    except Exception as exc:  # noqa: BLE001
      failure = CleanupFailure(f"Token cleanup failed for user {user_id}: {exc}")
      logger.error("%s tokens=%s", failure, [redact_token(token) for token in tokens], exc_info=True)
      return 0

    logger.info("Cleaned up %d invalid tokens for user_id=%s (requested=%d)", deleted, user_id, len(tokens))
    return deleted

  async def purge_user(self, *, user_id: str) -> int:
    """Delete all notifications and tokens of a deleted account.

    Running it again on an already purged user deletes nothing and succeeds.
    A store failure raises `CleanupFailure` so the platform can redeliver the
    deletion notice.
    """
    try:
      deleted = await self._notification_store.purge_user(user_id=user_id)
    except Exception as exc:
      raise CleanupFailure(f"Failed to purge data for user {user_id}") from exc

    logger.info("Cleaned up data for deleted user_id=%s deleted=%d", user_id, deleted)
    return deleted
