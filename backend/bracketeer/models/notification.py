"""Outbox of notification requests handed to the external delivery service."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from bracketeer.utils.time import utcnow


class NotificationOutbox(SQLModel, table=True):
    __tablename__ = "notification_outbox"

    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: str  # External user reference (Participant.user_id)
    tournament_id: int = Field(index=True)
    match_id: Optional[int] = Field(default=None)
    type: str  # match_ready | tournament_winner | match_forfeited | deadline_reminder | deadline_warning
    title: str
    message: str
    delivered: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
