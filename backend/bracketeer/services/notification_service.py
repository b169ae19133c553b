"""
Notification hand-off.

The engine never delivers anything itself: it builds NotificationRequest values while
a unit of work runs and hands them to a NotificationSink after the commit. The default
sink writes an outbox row per request for the external delivery service to drain.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Protocol, Sequence

from sqlalchemy.engine import Engine
from sqlmodel import Session

from bracketeer.models.notification import NotificationOutbox

logger = logging.getLogger(__name__)

MATCH_READY = "match_ready"
MATCH_FORFEITED = "match_forfeited"
TOURNAMENT_WINNER = "tournament_winner"
DEADLINE_REMINDER = "deadline_reminder"
DEADLINE_WARNING = "deadline_warning"


@dataclass(frozen=True)
class NotificationRequest:
    recipient_id: str  # Participant.user_id
    tournament_id: int
    type: str
    title: str
    message: str
    match_id: Optional[int] = None


class NotificationSink(Protocol):
    def enqueue(self, requests: Sequence[NotificationRequest]) -> None:
        ...


class OutboxNotificationSink:
    """Persists requests to ``notification_outbox`` in a session of its own."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def enqueue(self, requests: Sequence[NotificationRequest]) -> None:
        if not requests:
            return
        with Session(self.engine) as session:
            for req in requests:
                session.add(NotificationOutbox(**asdict(req)))
            session.commit()
        logger.debug("Queued %s notifications", len(requests))


def get_notification_sink() -> NotificationSink:
    """FastAPI dependency; tests override it with an in-memory sink."""
    from bracketeer.database import engine

    return OutboxNotificationSink(engine)
