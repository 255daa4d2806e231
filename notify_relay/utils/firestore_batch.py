"""Helpers for Firestore batched writes."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TypeVar

from google.cloud.firestore import Client as FirestoreClient
from google.cloud.firestore import DocumentReference

from notify_relay.config import FIRESTORE_MAX_BATCH_WRITES

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
  """Yield consecutive slices of at most `size` items."""
  if size <= 0:
    raise ValueError("size must be positive")
  for start in range(0, len(items), size):
    yield items[start : start + size]


def commit_deletes(client: FirestoreClient, refs: Sequence[DocumentReference], *, batch_size: int = FIRESTORE_MAX_BATCH_WRITES) -> int:
  """Delete documents in as few atomic batches as the write ceiling allows.

  Each batch is all-or-nothing; a failure raises and leaves later batches
  uncommitted.
  """
  deleted = 0
  for chunk in chunked(refs, min(batch_size, FIRESTORE_MAX_BATCH_WRITES)):
    batch = client.batch()
    for ref in chunk:
      batch.delete(ref)
    batch.commit()
    deleted += len(chunk)
  return deleted
