"""Notification types and their default delivery templates."""

from __future__ import annotations

import enum
from dataclasses import dataclass

TYPE_TAG_PREFIX = "NotificationType."


class NotificationType(enum.Enum):
  """Every notification kind the mobile client knows about."""

  CHAT = "chat"
  SUPPORT_REQUEST = "supportRequest"
  SUPPORT_ACCEPTED = "supportAccepted"
  SUPPORT_REJECTED = "supportRejected"
  LIKE = "like"
  COMMENT = "comment"
  FOLLOW = "follow"
  MENTION = "mention"
  POST = "post"
  ACHIEVEMENT = "achievement"
  REMINDER = "reminder"
  SYSTEM = "system"
  UNKNOWN = "unknown"

  @classmethod
  def parse(cls, tag: object) -> NotificationType:
    """Map a stored type tag to a member; unrecognised or non-text tags become UNKNOWN."""
    if not isinstance(tag, str) or not tag:
      return cls.UNKNOWN
    name = tag.strip()
    if name.startswith(TYPE_TAG_PREFIX):
      name = name[len(TYPE_TAG_PREFIX) :]
    return _TAG_LOOKUP.get(_normalize(name), cls.UNKNOWN)

  @property
  def tag(self) -> str:
    """The tag written to storage, in the client's enum form."""
    return f"{TYPE_TAG_PREFIX}{self.value}"


def _normalize(name: str) -> str:
  return name.replace("_", "").replace("-", "").lower()


_TAG_LOOKUP: dict[str, NotificationType] = {_normalize(member.value): member for member in NotificationType if member is not NotificationType.UNKNOWN}
# Legacy tags still written by older clients.
_TAG_LOOKUP[_normalize("chat_message")] = NotificationType.CHAT


class Priority(enum.Enum):
  HIGH = "high"
  DEFAULT = "default"


@dataclass(frozen=True)
class NotificationTemplate:
  """Default text and delivery options for a notification type."""

  channel_id: str
  priority: Priority
  default_title: str
  default_body: str

  @property
  def android_priority(self) -> str:
    return "high" if self.priority is Priority.HIGH else "normal"

  @property
  def apns_priority(self) -> str:
    return "10" if self.priority is Priority.HIGH else "5"


CHAT_CHANNEL = "chat_notifications"
SOCIAL_CHANNEL = "social_notifications"
ACHIEVEMENT_CHANNEL = "achievement_notifications"
REMINDER_CHANNEL = "reminder_notifications"

GENERIC_TEMPLATE = NotificationTemplate(channel_id=SOCIAL_CHANNEL, priority=Priority.DEFAULT, default_title="Notification", default_body="You have a new notification")
SOCIAL_TEMPLATE = NotificationTemplate(channel_id=SOCIAL_CHANNEL, priority=Priority.DEFAULT, default_title="Social Update", default_body="You have a new social notification")

TEMPLATES: dict[NotificationType, NotificationTemplate] = {
  NotificationType.CHAT: NotificationTemplate(channel_id=CHAT_CHANNEL, priority=Priority.HIGH, default_title="New Message", default_body="You have a new message"),
  NotificationType.SUPPORT_REQUEST: NotificationTemplate(channel_id=SOCIAL_CHANNEL, priority=Priority.HIGH, default_title="Support Request", default_body="Someone wants to support you"),
  NotificationType.SUPPORT_ACCEPTED: NotificationTemplate(channel_id=SOCIAL_CHANNEL, priority=Priority.DEFAULT, default_title="Support Accepted", default_body="Your support request was accepted"),
  NotificationType.SUPPORT_REJECTED: NotificationTemplate(channel_id=SOCIAL_CHANNEL, priority=Priority.DEFAULT, default_title="Support Declined", default_body="Your support request was declined"),
  NotificationType.LIKE: SOCIAL_TEMPLATE,
  NotificationType.COMMENT: SOCIAL_TEMPLATE,
  NotificationType.FOLLOW: SOCIAL_TEMPLATE,
  NotificationType.MENTION: SOCIAL_TEMPLATE,
  NotificationType.POST: SOCIAL_TEMPLATE,
  NotificationType.ACHIEVEMENT: NotificationTemplate(channel_id=ACHIEVEMENT_CHANNEL, priority=Priority.DEFAULT, default_title="Achievement Unlocked", default_body="You earned a new achievement"),
  NotificationType.REMINDER: NotificationTemplate(channel_id=REMINDER_CHANNEL, priority=Priority.HIGH, default_title="Reminder", default_body="You have a reminder"),
  NotificationType.SYSTEM: GENERIC_TEMPLATE,
  NotificationType.UNKNOWN: GENERIC_TEMPLATE,
}

# Adding a member without a template is a programming error, caught at import.
_missing = set(NotificationType) - set(TEMPLATES)
if _missing:
  raise RuntimeError(f"Notification types without a template: {sorted(member.name for member in _missing)}")


def resolve_template(kind: NotificationType | str | None) -> NotificationTemplate:
  """Return the template for a type or raw tag."""
  if not isinstance(kind, NotificationType):
    kind = NotificationType.parse(kind)
  return TEMPLATES[kind]
