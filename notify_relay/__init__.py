"""notify-relay: push notification dispatch for the mobile app."""

__version__ = "0.1.0"
