"""Run notification maintenance jobs by hand: the retention sweep or a single user purge."""

from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import logging
import sys

from notify_relay.config import get_settings
from notify_relay.core.firebase import build_firebase_clients, close_firebase_clients
from notify_relay.core.logging import initialize_logging
from notify_relay.notifications.factory import build_notification_components

logger = logging.getLogger("scripts.notifications_maintenance")


def _parse_now(raw: str | None) -> datetime.datetime | None:
  """Parse an ISO-8601 reference time, defaulting naive values to UTC."""
  if not raw:
    return None
  value = datetime.datetime.fromisoformat(raw)
  if value.tzinfo is None:
    value = value.replace(tzinfo=datetime.timezone.utc)
  return value


async def _run(args: argparse.Namespace) -> dict:
  settings = get_settings()
  initialize_logging(settings)
  # Build the same handles the service builds at startup.
  clients = build_firebase_clients(settings)
  try:
    components = build_notification_components(settings, clients)
    if args.command == "sweep":
      result = await components.sweeper.sweep(now=_parse_now(args.now))
      return result.as_dict()

    deleted = await components.janitor.purge_user(user_id=args.uid)
    return {"uid": args.uid, "deletedCount": deleted}
  finally:
    close_firebase_clients(clients)


def main() -> None:
  """Parse arguments, run the selected job and print its JSON result."""
  parser = argparse.ArgumentParser(description="Notification maintenance jobs.")
  subcommands = parser.add_subparsers(dest="command", required=True)

  sweep = subcommands.add_parser("sweep", help="Delete notifications older than the retention window.")
  sweep.add_argument("--now", help="Reference time (ISO-8601) used to compute the cutoff; defaults to the current time.")

  purge = subcommands.add_parser("purge-user", help="Delete every notification and token of one user.")
  purge.add_argument("uid", help="Firebase user id.")

  args = parser.parse_args()
  try:
    result = asyncio.run(_run(args))
  except Exception as exc:  # noqa: BLE001
    logger.error("Maintenance job %s failed", args.command, exc_info=True)
    print(f"ERROR: {exc}")
    sys.exit(1)

  print(json.dumps(result, sort_keys=True))


if __name__ == "__main__":
  main()
