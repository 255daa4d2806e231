"""Firebase-callable style entry points for the mobile client.

Requests carry `{"data": {...}}` and answer `{"result": {...}}`; failures use
the callable error envelope rendered by the exception handlers.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from notify_relay.api.deps import get_components
from notify_relay.core.security import get_caller_identity
from notify_relay.notifications.contracts import CallerIdentity
from notify_relay.notifications.factory import NotificationComponents

router = APIRouter()


class CallableRequest(BaseModel):
  """Callable request body; the arguments live under `data`."""

  data: dict[str, Any] | None = None
  model_config = ConfigDict(extra="ignore")


Caller = Annotated[CallerIdentity | None, Depends(get_caller_identity)]
Components = Annotated[NotificationComponents, Depends(get_components)]


@router.post("/updateUserToken")
async def update_user_token(payload: CallableRequest, caller: Caller, components: Components) -> dict[str, Any]:
  """Register the caller's FCM token."""
  data = payload.data or {}
  result = await components.service.register_token(caller, token=data.get("token"), platform=data.get("platform"))
  return {"result": result}


@router.post("/sendDirectNotification")
async def send_direct_notification(payload: CallableRequest, caller: Caller, components: Components) -> dict[str, Any]:
  """Create a notification record for another user."""
  data = payload.data or {}
  result = await components.service.send_direct_notification(
    caller,
    user_id=data.get("userId"),
    title=data.get("title"),
    body=data.get("body"),
    type=data.get("type"),
    payload=data.get("notificationData"),
    action_url=data.get("actionUrl"),
    image_url=data.get("imageUrl"),
  )
  return {"result": result}
