"""Explicit construction of the Firebase Admin SDK handles used by the service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from notify_relay.config import Settings

logger = logging.getLogger(__name__)

APP_NAME = "notify-relay"


@dataclass(frozen=True)
class FirebaseClients:
  """Handles to the Firebase app and its Firestore client, built once at startup."""

  app: firebase_admin.App
  firestore: FirestoreClient
  project_id: str


class FirebaseNotConfiguredError(RuntimeError):
  """Raised when the Firebase project is not configured."""


def build_firebase_clients(settings: Settings, *, name: str = APP_NAME) -> FirebaseClients:
  """Initialize (or reuse) a named Firebase app and return its client handles."""
  if not settings.firebase_project_id:
    raise FirebaseNotConfiguredError("FIREBASE_PROJECT_ID is not set.")

  try:
    app = firebase_admin.get_app(name)
  except ValueError:
    options = {"projectId": settings.firebase_project_id}
    if settings.firebase_service_account_json_path:
      cred = credentials.Certificate(settings.firebase_service_account_json_path)
      app = firebase_admin.initialize_app(cred, options, name=name)
    else:
      # Use Google Application Default Credentials.
      app = firebase_admin.initialize_app(options=options, name=name)
    logger.info("Firebase Admin SDK initialized project_id=%s app=%s", settings.firebase_project_id, name)

  return FirebaseClients(app=app, firestore=firestore.client(app=app), project_id=settings.firebase_project_id)


def close_firebase_clients(clients: FirebaseClients) -> None:
  """Release the Firestore channel and delete the named app."""
  try:
    clients.firestore.close()
  finally:
    firebase_admin.delete_app(clients.app)


def verify_id_token(clients: FirebaseClients, id_token: str) -> dict[str, Any] | None:
  """Verify a Firebase ID token, returning its claims or None when it is not valid."""
  try:
    return auth.verify_id_token(id_token, app=clients.app)
  except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError, auth.CertificateFetchError, auth.UserDisabledError) as exc:
    logger.warning("Token verification failed: %s", exc)
    return None
