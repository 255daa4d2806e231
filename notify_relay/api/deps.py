"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from notify_relay.notifications.contracts import Internal
from notify_relay.notifications.factory import NotificationComponents


def get_components(request: Request) -> NotificationComponents:
  """Return the notification pipeline built at startup."""
  components = getattr(request.app.state, "components", None)
  if components is None:
    raise Internal("Notification backend is not configured")
  return components
