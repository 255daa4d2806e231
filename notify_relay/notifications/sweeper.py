"""Scheduled retention sweep for notification records."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from notify_relay.notifications.contracts import NotificationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
  deleted_count: int
  users_scanned: int
  cutoff: datetime.datetime

  def as_dict(self) -> dict[str, int | str]:
    return {"deletedCount": self.deleted_count, "usersScanned": self.users_scanned, "cutoff": self.cutoff.isoformat()}


class RetentionSweeper:
  """Deletes notification records older than the retention window, one user at a time."""

  def __init__(self, *, notification_store: NotificationStore, retention: datetime.timedelta) -> None:
    if retention <= datetime.timedelta(0):
      raise ValueError("retention must be positive")
    self._notification_store = notification_store
    self._retention = retention

  def cutoff_for(self, now: datetime.datetime) -> datetime.datetime:
    if now.tzinfo is None:
      now = now.replace(tzinfo=datetime.timezone.utc)
    return now - self._retention

  async def sweep(self, *, now: datetime.datetime | None = None) -> SweepResult:
    """Delete every record with a timestamp strictly older than now minus the retention window."""
    cutoff = self.cutoff_for(now or datetime.datetime.now(datetime.timezone.utc))
    user_ids = await self._notification_store.list_user_ids()

    total_deleted = 0
    for user_id in user_ids:
      try:
        deleted = await self._notification_store.delete_older_than(user_id=user_id, cutoff=cutoff)
      except Exception:
        logger.error("Error cleaning up notifications user_id=%s deleted_so_far=%d", user_id, total_deleted, exc_info=True)
        raise
      if deleted:
        logger.debug("Deleted %d old notifications for user_id=%s", deleted, user_id)
      total_deleted += deleted

    result = SweepResult(deleted_count=total_deleted, users_scanned=len(user_ids), cutoff=cutoff)
    logger.info("Cleaned up %d old notifications across %d users cutoff=%s", result.deleted_count, result.users_scanned, cutoff.isoformat())
    return result
