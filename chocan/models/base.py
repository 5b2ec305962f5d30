"""Base models shared across entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4


@dataclass
class NotificationEvent:
    """Event envelope published to a notification channel.

    Never persisted: built and sent once per committed record.
    """

    channel_key: str
    event_type: str  # entity.action (e.g., transaction.created)
    payload: dict
    subject: str | None = None  # Entity ID affected
    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "chocan"
