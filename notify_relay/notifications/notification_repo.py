"""Repository helpers for notification records in Firestore."""

from __future__ import annotations

import datetime
import logging

from google.cloud import firestore
from google.cloud.firestore import Client as FirestoreClient
from google.cloud.firestore import CollectionReference, FieldFilter
from starlette.concurrency import run_in_threadpool

from notify_relay.config import FIRESTORE_MAX_BATCH_WRITES
from notify_relay.notifications.contracts import NotificationDraft, NotificationStore
from notify_relay.notifications.paths import NOTIFICATIONS_COLLECTION, TOKENS_COLLECTION, USERS_COLLECTION, parse_document_path
from notify_relay.utils.firestore_batch import commit_deletes

logger = logging.getLogger(__name__)


class FirestoreNotificationRepository(NotificationStore):
  """Persist notification records under `users/{uid}/notifications` and the chat outbox."""

  def __init__(self, *, client: FirestoreClient, batch_size: int = FIRESTORE_MAX_BATCH_WRITES) -> None:
    self._client = client
    self._batch_size = batch_size

  def _user_collection(self, user_id: str, name: str) -> CollectionReference:
    return self._client.collection(USERS_COLLECTION).document(user_id).collection(name)

  async def create(self, *, user_id: str, draft: NotificationDraft) -> str:
    """Insert a record with a generated id; the insert itself triggers delivery."""
    return await run_in_threadpool(self._create_sync, user_id, draft)

  def _create_sync(self, user_id: str, draft: NotificationDraft) -> str:
    ref = self._user_collection(user_id, NOTIFICATIONS_COLLECTION).document()
    ref.set(
      {
        "id": ref.id,
        "title": draft.title,
        "body": draft.body,
        "type": draft.type,
        "data": dict(draft.data),
        "timestamp": firestore.SERVER_TIMESTAMP,
        "isRead": False,
        "actionUrl": draft.action_url,
        "imageUrl": draft.image_url,
      }
    )
    return ref.id

  async def delete_record(self, *, path: str) -> None:
    """Remove a delivered record by its own document path."""
    await run_in_threadpool(self._client.document(*parse_document_path(path)).delete)

  async def list_user_ids(self) -> list[str]:
    """List every user id, including users whose parent document is missing."""
    return await run_in_threadpool(self._list_user_ids_sync)

  def _list_user_ids_sync(self) -> list[str]:
    return [ref.id for ref in self._client.collection(USERS_COLLECTION).list_documents()]

  async def delete_older_than(self, *, user_id: str, cutoff: datetime.datetime) -> int:
    """Delete notifications whose timestamp is strictly before the cutoff."""
    return await run_in_threadpool(self._delete_older_than_sync, user_id, cutoff)

  def _delete_older_than_sync(self, user_id: str, cutoff: datetime.datetime) -> int:
    # Only references are needed, so skip fetching field data.
    query = self._user_collection(user_id, NOTIFICATIONS_COLLECTION).where(filter=FieldFilter("timestamp", "<", cutoff)).select([])
    refs = [snapshot.reference for snapshot in query.stream()]
    if not refs:
      return 0
    return commit_deletes(self._client, refs, batch_size=self._batch_size)

  async def purge_user(self, *, user_id: str) -> int:
    """Delete every notification and token of a user."""
    return await run_in_threadpool(self._purge_user_sync, user_id)

  def _purge_user_sync(self, user_id: str) -> int:
    refs = []
    for name in (NOTIFICATIONS_COLLECTION, TOKENS_COLLECTION):
      refs.extend(snapshot.reference for snapshot in self._user_collection(user_id, name).select([]).stream())
    if not refs:
      return 0
    if len(refs) > self._batch_size:
      logger.warning("Purge for user_id=%s spans %d documents; deleting in batches of %d", user_id, len(refs), self._batch_size)
    return commit_deletes(self._client, refs, batch_size=self._batch_size)
