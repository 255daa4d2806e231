"""Platform-invoked event handlers: record creation, account deletion and the retention schedule."""

from __future__ import annotations

import datetime
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from notify_relay.api.deps import get_components
from notify_relay.core.security import verify_event_secret
from notify_relay.notifications.contracts import CleanupFailure
from notify_relay.notifications.dispatcher import NotificationCreatedEvent
from notify_relay.notifications.factory import NotificationComponents
from notify_relay.notifications.paths import UnsupportedDocumentPath

router = APIRouter(dependencies=[Depends(verify_event_secret)])
logger = logging.getLogger(__name__)

Components = Annotated[NotificationComponents, Depends(get_components)]


class NotificationCreatedPayload(BaseModel):
  """A created notification document: its path and its fields."""

  path: str = Field(min_length=1, max_length=1500)
  document: dict[str, Any] = Field(default_factory=dict, alias="value")
  model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserDeletedPayload(BaseModel):
  uid: str = Field(min_length=1, max_length=128)
  model_config = ConfigDict(extra="ignore")


class RetentionSweepPayload(BaseModel):
  now: datetime.datetime | None = None
  model_config = ConfigDict(extra="ignore")


@router.post("/notifications/created", status_code=status.HTTP_200_OK)
async def notification_created(payload: NotificationCreatedPayload, components: Components) -> dict[str, Any]:
  """Deliver a newly created notification record."""
  try:
    result = await components.dispatcher.dispatch(NotificationCreatedEvent(path=payload.path, fields=payload.document))
  except UnsupportedDocumentPath as exc:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
  return {"status": "ok", "result": result.as_dict()}


@router.post("/users/deleted", status_code=status.HTTP_200_OK)
async def user_deleted(payload: UserDeletedPayload, components: Components) -> dict[str, Any]:
  """Remove every notification and token of a deleted account."""
  try:
    deleted = await components.janitor.purge_user(user_id=payload.uid)
  except CleanupFailure as exc:
    logger.error("Error cleaning up user data uid=%s", payload.uid, exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="User data cleanup failed") from exc
  return {"status": "ok", "deletedCount": deleted}


@router.post("/retention-sweep", status_code=status.HTTP_200_OK)
async def retention_sweep(components: Components, payload: RetentionSweepPayload | None = None) -> dict[str, Any]:
  """Run the scheduled retention sweep."""
  now = payload.now if payload else None
  result = await components.sweeper.sweep(now=now)
  return {"status": "ok", "result": result.as_dict()}
