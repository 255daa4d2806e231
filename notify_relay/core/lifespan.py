import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notify_relay.config import get_settings
from notify_relay.core.firebase import FirebaseNotConfiguredError, build_firebase_clients, close_firebase_clients
from notify_relay.core.logging import initialize_logging
from notify_relay.notifications.factory import build_notification_components


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Build logging, Firebase handles and the pipeline once per process."""
  settings = get_settings()
  logger = logging.getLogger("notify_relay.core.lifespan")
  initialize_logging(settings)

  app.state.firebase = None
  app.state.components = None
  try:
    clients = build_firebase_clients(settings)
  except FirebaseNotConfiguredError as exc:
    logger.warning("Firebase not configured; callables and events will fail until it is: %s", exc)
  except Exception:
    # Keep serving /health so the platform can report the failure.
    logger.error("Firebase initialization failed", exc_info=True)
  else:
    app.state.firebase = clients
    app.state.components = build_notification_components(settings, clients)
    logger.info("Startup complete env=%s token_storage=%s push_enabled=%s retention_days=%d", settings.environment, settings.token_storage, settings.push_enabled, settings.retention_days)

  try:
    yield
  finally:
    if app.state.firebase is not None:
      close_firebase_clients(app.state.firebase)
