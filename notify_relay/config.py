"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from notify_relay.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

TOKEN_STORAGE_CURRENT = "current"
TOKEN_STORAGE_COLLECTION = "collection"

# Firestore rejects batched writes with more than 500 operations.
FIRESTORE_MAX_BATCH_WRITES = 500

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the notification relay."""

  environment: str
  debug: bool
  log_level: str
  log_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  push_enabled: bool
  push_dry_run: bool
  token_storage: str
  retention_days: int
  sweep_interval_hours: int
  batch_size: int
  event_secret: str | None
  chat_outbox_collection: str


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("NOTIFY_ENV", "development").strip().lower()
  debug = _parse_bool(os.getenv("NOTIFY_DEBUG"))

  log_level = (os.getenv("NOTIFY_LOG_LEVEL") or "INFO").strip().upper()
  if log_level not in _LOG_LEVELS:
    raise ValueError(f"NOTIFY_LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}.")

  log_max_bytes = _parse_positive_int("NOTIFY_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("NOTIFY_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NOTIFY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  token_storage = (os.getenv("NOTIFY_TOKEN_STORAGE") or TOKEN_STORAGE_CURRENT).strip().lower()
  if token_storage not in {TOKEN_STORAGE_CURRENT, TOKEN_STORAGE_COLLECTION}:
    raise ValueError("NOTIFY_TOKEN_STORAGE must be 'current' or 'collection'.")

  retention_days = _parse_positive_int("NOTIFY_RETENTION_DAYS", "30")
  sweep_interval_hours = _parse_positive_int("NOTIFY_SWEEP_INTERVAL_HOURS", "24")

  batch_size = _parse_positive_int("NOTIFY_BATCH_SIZE", str(FIRESTORE_MAX_BATCH_WRITES))
  if batch_size > FIRESTORE_MAX_BATCH_WRITES:
    raise ValueError(f"NOTIFY_BATCH_SIZE must not exceed {FIRESTORE_MAX_BATCH_WRITES}.")

  chat_outbox_collection = (os.getenv("NOTIFY_CHAT_OUTBOX_COLLECTION") or "chat_notifications").strip()
  if "/" in chat_outbox_collection:
    raise ValueError("NOTIFY_CHAT_OUTBOX_COLLECTION must be a top-level collection name.")

  return Settings(
    environment=environment,
    debug=debug,
    log_level=log_level,
    log_dir=_optional_str(os.getenv("NOTIFY_LOG_DIR")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("NOTIFY_LOG_HTTP_4XX")),
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    push_enabled=_parse_bool(os.getenv("NOTIFY_PUSH_ENABLED"), default=True),
    push_dry_run=_parse_bool(os.getenv("NOTIFY_PUSH_DRY_RUN")),
    token_storage=token_storage,
    retention_days=retention_days,
    sweep_interval_hours=sweep_interval_hours,
    batch_size=batch_size,
    event_secret=_optional_str(os.getenv("NOTIFY_EVENT_SECRET")),
    chat_outbox_collection=chat_outbox_collection,
  )
