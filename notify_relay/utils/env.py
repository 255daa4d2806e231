"""Local .env support for running the relay outside Cloud Run."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

# Only keys the relay itself reads are taken from the file.
SERVICE_ENV_PREFIXES = ("NOTIFY_", "FIREBASE_", "GOOGLE_")


def default_env_path() -> Path:
  """NOTIFY_ENV_FILE when set, else the .env beside the package."""
  explicit = os.getenv("NOTIFY_ENV_FILE")
  if explicit:
    return Path(explicit).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_lines(text: str) -> Iterator[tuple[str, str]]:
  """Yield (key, value) pairs, skipping comments and lines without an assignment."""
  for line in (raw.strip() for raw in text.splitlines()):
    if not line or line.startswith("#"):
      continue
    key, sep, value = line.removeprefix("export ").partition("=")
    key = key.strip()
    if not sep or not key:
      continue
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
      value = value[1:-1]
    yield key, value


def load_env_file(path: Path, *, override: bool = False, prefixes: tuple[str, ...] = SERVICE_ENV_PREFIXES) -> list[str]:
  """Export the relay's keys from a .env file and return the names that were set.

  Keys outside ``prefixes`` are ignored, and keys already in the environment win unless ``override`` is set.
  """
  if not path.is_file():
    return []

  loaded: list[str] = []
  for key, value in parse_env_lines(path.read_text(encoding="utf-8")):
    if not key.startswith(prefixes):
      continue
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    loaded.append(key)
  return loaded
