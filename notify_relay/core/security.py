from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from notify_relay.config import Settings, get_settings
from notify_relay.core.firebase import FirebaseClients, verify_id_token
from notify_relay.notifications.contracts import CallerIdentity, Internal

logger = logging.getLogger(__name__)

# Callables decide for themselves how to reject anonymous callers.
security_scheme = HTTPBearer(auto_error=False)


def get_firebase_clients(request: Request) -> FirebaseClients:
  """Return the Firebase handles built at startup."""
  clients = getattr(request.app.state, "firebase", None)
  if clients is None:
    raise Internal("Notification backend is not configured")
  return clients


async def get_caller_identity(token: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)], clients: Annotated[FirebaseClients, Depends(get_firebase_clients)]) -> CallerIdentity | None:
  """Verify the bearer Firebase ID token; return None for anonymous or invalid callers."""
  if token is None or not token.credentials:
    return None

  decoded_claims = await run_in_threadpool(verify_id_token, clients, token.credentials)
  if not decoded_claims:
    return None

  uid = decoded_claims.get("uid")
  if not uid:
    logger.warning("Verified token without uid claim")
    return None
  return CallerIdentity(uid=str(uid), claims=decoded_claims)


async def verify_event_secret(
  settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_notify_event_secret: str | None = Header(default=None)
) -> None:
  """Only the platform (scheduler, event router, task queue) may invoke event endpoints."""
  if not settings.event_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Event authentication is not configured.")

  # Cloud Run invoker auth may occupy Authorization, so the dedicated header is checked first.
  shared_secret_valid = secrets.compare_digest((x_notify_event_secret or "").encode(), settings.event_secret.encode())
  bearer_valid = secrets.compare_digest((authorization or "").encode(), f"Bearer {settings.event_secret}".encode())
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized access attempt to event endpoint")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid event secret.")
