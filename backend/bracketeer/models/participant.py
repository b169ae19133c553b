from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from bracketeer.utils.time import utcnow

if TYPE_CHECKING:
    from bracketeer.models.tournament import Tournament


class Participant(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "user_id", name="uq_participant_tournament_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    user_id: str  # External account reference
    display_name: Optional[str] = Field(default=None)
    skill_rating: Optional[float] = Field(default=None)  # Higher is stronger
    seed: Optional[int] = Field(default=None)  # Explicit 1-based seed, wins over rating
    joined_at: datetime = Field(default_factory=utcnow)

    tournament: "Tournament" = Relationship(back_populates="participants")
