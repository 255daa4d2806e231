"""Shared fixtures for the notification pipeline tests."""

from __future__ import annotations

import pytest

from notify_relay.notifications.factory import NotificationComponents
from tests.support import InMemoryStore, RecordingGateway, build_components


@pytest.fixture
def store() -> InMemoryStore:
  return InMemoryStore()


@pytest.fixture
def gateway() -> RecordingGateway:
  return RecordingGateway()


@pytest.fixture
def components(store, gateway) -> NotificationComponents:
  return build_components(store, gateway)


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"
