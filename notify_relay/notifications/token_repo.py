"""Repository helpers for device token persistence in Firestore."""

from __future__ import annotations

from collections.abc import Sequence

from google.cloud import firestore
from google.cloud.firestore import Client as FirestoreClient
from google.cloud.firestore import CollectionReference, FieldFilter
from starlette.concurrency import run_in_threadpool

from notify_relay.config import FIRESTORE_MAX_BATCH_WRITES, TOKEN_STORAGE_COLLECTION, TOKEN_STORAGE_CURRENT
from notify_relay.notifications.contracts import TokenStore
from notify_relay.notifications.paths import CURRENT_TOKEN_DOC_ID, TOKENS_COLLECTION, USERS_COLLECTION, token_doc_id
from notify_relay.utils.firestore_batch import chunked, commit_deletes

# Firestore caps the number of values in an `in` filter.
_IN_FILTER_MAX_VALUES = 30


class FirestoreTokenRepository(TokenStore):
  """Persist and look up device tokens under `users/{uid}/fcm_tokens`."""

  def __init__(self, *, client: FirestoreClient, storage_mode: str = TOKEN_STORAGE_CURRENT, batch_size: int = FIRESTORE_MAX_BATCH_WRITES) -> None:
    if storage_mode not in {TOKEN_STORAGE_CURRENT, TOKEN_STORAGE_COLLECTION}:
      raise ValueError(f"Unknown token storage mode: {storage_mode}")
    self._client = client
    self._storage_mode = storage_mode
    self._batch_size = batch_size

  def _tokens(self, user_id: str) -> CollectionReference:
    return self._client.collection(USERS_COLLECTION).document(user_id).collection(TOKENS_COLLECTION)

  async def upsert(self, *, user_id: str, token: str, platform: str) -> None:
    """Write the token with a server-side update timestamp."""
    await run_in_threadpool(self._upsert_sync, user_id, token, platform)

  def _upsert_sync(self, user_id: str, token: str, platform: str) -> None:
    # The single-slot layout overwrites; the multi-token layout keys by token digest.
    doc_id = CURRENT_TOKEN_DOC_ID if self._storage_mode == TOKEN_STORAGE_CURRENT else token_doc_id(token)
    self._tokens(user_id).document(doc_id).set({"token": token, "platform": platform, "updatedAt": firestore.SERVER_TIMESTAMP})

  async def list_tokens(self, *, user_id: str) -> list[str]:
    """List every non-empty token registered for a user, without duplicates."""
    return await run_in_threadpool(self._list_tokens_sync, user_id)

  def _list_tokens_sync(self, user_id: str) -> list[str]:
    tokens: list[str] = []
    for snapshot in self._tokens(user_id).stream():
      value = (snapshot.to_dict() or {}).get("token")
      if isinstance(value, str) and value and value not in tokens:
        tokens.append(value)
    return tokens

  async def delete_tokens(self, *, user_id: str, tokens: Sequence[str]) -> int:
    """Delete every token document of the user whose value is listed."""
    return await run_in_threadpool(self._delete_tokens_sync, user_id, list(tokens))

  def _delete_tokens_sync(self, user_id: str, tokens: list[str]) -> int:
    unique_tokens = list(dict.fromkeys(token for token in tokens if token))
    if not unique_tokens:
      return 0

    refs = []
    for chunk in chunked(unique_tokens, _IN_FILTER_MAX_VALUES):
      query = self._tokens(user_id).where(filter=FieldFilter("token", "in", list(chunk)))
      refs.extend(snapshot.reference for snapshot in query.stream())

    if not refs:
      return 0
    return commit_deletes(self._client, refs, batch_size=self._batch_size)
