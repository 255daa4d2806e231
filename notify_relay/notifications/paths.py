"""Firestore collection layout."""

from __future__ import annotations

import hashlib

USERS_COLLECTION = "users"
TOKENS_COLLECTION = "fcm_tokens"
NOTIFICATIONS_COLLECTION = "notifications"
CURRENT_TOKEN_DOC_ID = "current"


class UnsupportedDocumentPath(ValueError):
  """A path that does not name a notification record this service handles."""


def token_doc_id(token: str) -> str:
  """Stable document id for a token in the multi-token layout."""
  return hashlib.sha256(token.encode("utf-8")).hexdigest()[:40]


def parse_document_path(path: str) -> tuple[str, ...]:
  """Split a document path, accepting the fully qualified `projects/.../documents/...` form."""
  normalized = path.strip().strip("/")
  marker = "/documents/"
  if marker in normalized:
    normalized = normalized.split(marker, 1)[1]
  segments = tuple(segment for segment in normalized.split("/") if segment)
  if not segments or len(segments) % 2 != 0:
    raise UnsupportedDocumentPath(f"Not a document path: {path!r}")
  return segments
