"""Result claims submitted by match occupants, pending organizer review."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from bracketeer.utils.time import utcnow

SUBMISSION_PENDING = "pending"
SUBMISSION_APPROVED = "approved"
SUBMISSION_REJECTED = "rejected"


class MatchResultSubmission(SQLModel, table=True):
    __tablename__ = "match_result_submission"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    submitted_by: int = Field(foreign_key="participant.id")
    winner_id: int = Field(foreign_key="participant.id")
    player1_score: Optional[int] = Field(default=None)
    player2_score: Optional[int] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    status: str = Field(default=SUBMISSION_PENDING)  # pending | approved | rejected
    created_at: datetime = Field(default_factory=utcnow)
    reviewed_at: Optional[datetime] = Field(default=None)
