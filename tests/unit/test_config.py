from __future__ import annotations

import os

import pytest

from notify_relay.config import TOKEN_STORAGE_COLLECTION, TOKEN_STORAGE_CURRENT, get_settings
from notify_relay.utils.env import default_env_path, load_env_file

_ENV_NAMES = (
  "NOTIFY_ENV",
  "NOTIFY_DEBUG",
  "NOTIFY_LOG_LEVEL",
  "NOTIFY_LOG_DIR",
  "NOTIFY_LOG_MAX_BYTES",
  "NOTIFY_LOG_BACKUP_COUNT",
  "NOTIFY_PUSH_ENABLED",
  "NOTIFY_PUSH_DRY_RUN",
  "NOTIFY_TOKEN_STORAGE",
  "NOTIFY_RETENTION_DAYS",
  "NOTIFY_BATCH_SIZE",
  "NOTIFY_EVENT_SECRET",
  "NOTIFY_CHAT_OUTBOX_COLLECTION",
  "FIREBASE_PROJECT_ID",
)


@pytest.fixture
def clean_env(monkeypatch):
  for name in _ENV_NAMES:
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()


def test_defaults(clean_env):
  settings = get_settings()

  assert settings.environment == "development"
  assert settings.log_level == "INFO"
  assert settings.log_dir is None
  assert settings.push_enabled is True
  assert settings.push_dry_run is False
  assert settings.token_storage == TOKEN_STORAGE_CURRENT
  assert settings.retention_days == 30
  assert settings.batch_size == 500
  assert settings.event_secret is None
  assert settings.chat_outbox_collection == "chat_notifications"


def test_values_are_read_from_environment(clean_env):
  clean_env.setenv("NOTIFY_PUSH_ENABLED", "off")
  clean_env.setenv("NOTIFY_TOKEN_STORAGE", "Collection")
  clean_env.setenv("NOTIFY_RETENTION_DAYS", "7")
  clean_env.setenv("NOTIFY_EVENT_SECRET", "  s3cret  ")
  clean_env.setenv("FIREBASE_PROJECT_ID", "fitness-prod")

  settings = get_settings()

  assert settings.push_enabled is False
  assert settings.token_storage == TOKEN_STORAGE_COLLECTION
  assert settings.retention_days == 7
  assert settings.event_secret == "s3cret"
  assert settings.firebase_project_id == "fitness-prod"


@pytest.mark.parametrize(
  ("name", "value"),
  [("NOTIFY_LOG_LEVEL", "LOUD"), ("NOTIFY_TOKEN_STORAGE", "both"), ("NOTIFY_RETENTION_DAYS", "0"), ("NOTIFY_BATCH_SIZE", "501"), ("NOTIFY_CHAT_OUTBOX_COLLECTION", "a/b")],
)
def test_invalid_values_are_rejected(clean_env, name, value):
  clean_env.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_env_file_does_not_override_existing_values(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text('# local\nexport NOTIFY_TEST_A="from-file"\nNOTIFY_TEST_B=from-file\nnot a pair\n', encoding="utf-8")
  monkeypatch.setenv("NOTIFY_TEST_B", "from-process")
  monkeypatch.delenv("NOTIFY_TEST_A", raising=False)

  load_env_file(env_file)

  assert os.environ["NOTIFY_TEST_A"] == "from-file"
  assert os.environ["NOTIFY_TEST_B"] == "from-process"
  monkeypatch.delenv("NOTIFY_TEST_A")


def test_env_file_only_exports_service_keys(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text("NOTIFY_TEST_C=1\nFIREBASE_TEST_D=2\nPATH_TEST_E=3\n", encoding="utf-8")
  for name in ("NOTIFY_TEST_C", "FIREBASE_TEST_D", "PATH_TEST_E"):
    monkeypatch.delenv(name, raising=False)

  loaded = load_env_file(env_file)

  assert loaded == ["NOTIFY_TEST_C", "FIREBASE_TEST_D"]
  assert "PATH_TEST_E" not in os.environ
  monkeypatch.delenv("NOTIFY_TEST_C")
  monkeypatch.delenv("FIREBASE_TEST_D")


def test_env_file_path_can_be_overridden(tmp_path, monkeypatch):
  monkeypatch.setenv("NOTIFY_ENV_FILE", str(tmp_path / "relay.env"))

  assert default_env_path() == tmp_path / "relay.env"


def test_missing_env_file_loads_nothing(tmp_path):
  assert load_env_file(tmp_path / "absent.env") == []
