from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from bracketeer.models.tournament import Tournament

ROUND_PENDING = "pending"
ROUND_ACTIVE = "active"
ROUND_COMPLETED = "completed"


class TournamentRound(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint(
            "tournament_id", "bracket_side", "group_index", "round_number", name="uq_round_tournament_side_group_round"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    bracket_side: str
    group_index: int = Field(default=0)
    round_number: int
    status: str = Field(default=ROUND_PENDING)  # pending | active | completed
    deadline: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    tournament: "Tournament" = Relationship(back_populates="rounds")
