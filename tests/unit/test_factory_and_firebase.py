from __future__ import annotations

import logging
import logging.handlers
from unittest.mock import MagicMock

import pytest

from notify_relay.core import firebase as firebase_module
from notify_relay.core.firebase import FirebaseClients, FirebaseNotConfiguredError, build_firebase_clients, verify_id_token
from notify_relay.core.logging import TruncatedFormatter, build_handlers, redact_token
from notify_relay.notifications.factory import build_notification_components, build_push_gateway
from notify_relay.notifications.push_sender import FcmPushGateway, NullPushGateway
from notify_relay.notifications.token_repo import FirestoreTokenRepository
from tests.support import make_settings


def _clients() -> FirebaseClients:
  return FirebaseClients(app=MagicMock(), firestore=MagicMock(), project_id="demo-project")


def test_push_gateway_is_disabled_by_configuration():
  assert isinstance(build_push_gateway(make_settings(push_enabled=False), _clients()), NullPushGateway)


def test_push_gateway_uses_the_explicit_app():
  clients = _clients()
  gateway = build_push_gateway(make_settings(push_dry_run=True), clients)

  assert isinstance(gateway, FcmPushGateway)
  assert gateway._app is clients.app
  assert gateway._dry_run is True


def test_components_share_the_configured_token_layout():
  components = build_notification_components(make_settings(token_storage="current"), _clients(), gateway=NullPushGateway())

  token_store = components.service._token_store
  assert isinstance(token_store, FirestoreTokenRepository)
  assert token_store._storage_mode == "current"
  assert components.dispatcher._token_store is token_store


def test_firebase_requires_a_project():
  with pytest.raises(FirebaseNotConfiguredError):
    build_firebase_clients(make_settings(firebase_project_id=None))


def test_firebase_reuses_an_existing_named_app(monkeypatch):
  app = MagicMock()
  firestore_client = MagicMock()
  monkeypatch.setattr(firebase_module.firebase_admin, "get_app", lambda name: app)
  monkeypatch.setattr(firebase_module.firebase_admin, "initialize_app", MagicMock(side_effect=AssertionError("should not initialize")))
  monkeypatch.setattr(firebase_module.firestore, "client", lambda app=None: firestore_client)

  clients = build_firebase_clients(make_settings())

  assert clients.app is app
  assert clients.firestore is firestore_client
  assert clients.project_id == "demo-project"


def test_firebase_initializes_with_default_credentials(monkeypatch):
  initialize_app = MagicMock()

  def _missing(name):
    raise ValueError(name)

  monkeypatch.setattr(firebase_module.firebase_admin, "get_app", _missing)
  monkeypatch.setattr(firebase_module.firebase_admin, "initialize_app", initialize_app)
  monkeypatch.setattr(firebase_module.firestore, "client", lambda app=None: MagicMock())

  build_firebase_clients(make_settings(), name="test-app")

  initialize_app.assert_called_once_with(options={"projectId": "demo-project"}, name="test-app")


def test_verify_id_token_returns_none_for_invalid_tokens(monkeypatch):
  def _reject(token, app=None):
    raise ValueError("malformed")

  monkeypatch.setattr(firebase_module.auth, "verify_id_token", _reject)

  assert verify_id_token(_clients(), "bad") is None


def test_verify_id_token_returns_claims(monkeypatch):
  monkeypatch.setattr(firebase_module.auth, "verify_id_token", lambda token, app=None: {"uid": "u1"})

  assert verify_id_token(_clients(), "good") == {"uid": "u1"}


@pytest.mark.parametrize(("token", "expected"), [(None, "<none>"), ("short", "***"), ("abcdefghijklmnopqrstuvwxyz", "abcdefgh...")])
def test_redact_token(token, expected):
  assert redact_token(token) == expected


def test_build_handlers_adds_rotating_file_when_configured(tmp_path):
  handlers = build_handlers(make_settings(log_dir=str(tmp_path / "logs")))
  try:
    assert len(handlers) == 2
    assert isinstance(handlers[0].formatter, TruncatedFormatter)
    assert isinstance(handlers[1], logging.handlers.RotatingFileHandler)
    assert (tmp_path / "logs").is_dir()
  finally:
    for handler in handlers:
      handler.close()


def test_build_handlers_stdout_only_by_default():
  handlers = build_handlers(make_settings())
  assert len(handlers) == 1
