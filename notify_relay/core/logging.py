import logging
import logging.handlers
import sys
import time
from pathlib import Path
from types import TracebackType

from notify_relay.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOGGING_INITIALIZED = False


class TruncatedFormatter(logging.Formatter):
  """Formatter that truncates the stack trace to the last few lines."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    import traceback

    lines = traceback.format_exception(*ei)
    # Keep header + last 5 lines of traceback
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _build_file_handler(settings: Settings) -> logging.Handler:
  log_dir = Path(settings.log_dir or "logs")
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

  log_path = log_dir / f"notify_relay_{time.strftime('%Y%m%d_%H%M%S')}.log"
  file_handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)

  # Name backups app.log-1 instead of app.log.1
  def custom_namer(default_name: str) -> str:
    parts = default_name.rsplit(".", 1)
    if len(parts) == 2 and parts[1].isdigit():
      return f"{parts[0]}-{parts[1]}"
    return default_name

  file_handler.namer = custom_namer
  file_handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return file_handler


def build_handlers(settings: Settings) -> list[logging.Handler]:
  """Create the stdout handler and, when a log directory is configured, a rotating file handler."""
  stream = logging.StreamHandler(sys.stdout)
  stream.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  handlers: list[logging.Handler] = [stream]
  if settings.log_dir:
    handlers.append(_build_file_handler(settings))
  return handlers


def setup_logging(settings: Settings) -> list[logging.Handler]:
  """Ensure all loggers use our handlers and propagate to root."""
  handlers = build_handlers(settings)
  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = list(handlers)
    log.propagate = False

  level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
  logging.basicConfig(level=level, handlers=handlers, force=True)
  # The Google client libraries are chatty at DEBUG.
  for noisy in ("google.auth", "urllib3", "grpc"):
    logging.getLogger(noisy).setLevel(max(level, logging.INFO))
  return handlers


def initialize_logging(settings: Settings) -> None:
  """Initialize logging once per process."""
  global _LOGGING_INITIALIZED
  if _LOGGING_INITIALIZED:
    return
  handlers = setup_logging(settings)
  _LOGGING_INITIALIZED = True
  logging.getLogger("notify_relay.core.logging").info("Logging initialized level=%s handlers=%d", settings.log_level, len(handlers))


def redact_token(token: str | None) -> str:
  """Shorten a device token for log output."""
  if not token:
    return "<none>"
  if len(token) <= 12:
    return "***"
  return f"{token[:8]}..."
