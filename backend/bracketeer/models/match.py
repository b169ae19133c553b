from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from bracketeer.utils.time import utcnow

if TYPE_CHECKING:
    from bracketeer.models.tournament import Tournament

MATCH_PENDING = "pending"
MATCH_READY = "ready"
MATCH_ACTIVE = "active"
MATCH_COMPLETED = "completed"
MATCH_BYE = "bye"

TERMINAL_STATUSES = (MATCH_COMPLETED, MATCH_BYE)

# Bracket sides
SIDE_MAIN = "main"
SIDE_WINNERS = "winners"
SIDE_LOSERS = "losers"
SIDE_GRAND_FINAL = "grand_final"
SIDE_ROUND_ROBIN = "round_robin"
SIDE_GROUP = "group"
SIDE_KNOCKOUT = "knockout"

# Match types; "final" and "grand_final" end the tournament
TYPE_KNOCKOUT = "knockout"
TYPE_FINAL = "final"
TYPE_WINNERS = "winners_bracket"
TYPE_LOSERS = "losers_bracket"
TYPE_GRAND_FINAL = "grand_final"
TYPE_GROUP = "group"

TERMINAL_TYPES = (TYPE_FINAL, TYPE_GRAND_FINAL)

# Slot source roles
ROLE_WINNER = "winner"
ROLE_LOSER = "loser"
ROLE_GROUP = "group"

FORFEIT_PLAYER1 = "player1"  # player1 forfeited
FORFEIT_PLAYER2 = "player2"
FORFEIT_DOUBLE = "double"


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "bracket_position", name="uq_match_tournament_position"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int  # 1-based within its side (and group)
    match_number: int  # 1-based within its round
    bracket_side: str = Field(default=SIDE_MAIN)
    group_index: int = Field(default=0)  # 1..G for group matches, 0 otherwise
    match_type: str = Field(default=TYPE_KNOCKOUT)
    bracket_position: str  # Display token, e.g. R2M3 / WR1M2 / LR3M1 / GF / GAR1M2

    player1_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    player2_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    # Where each slot comes from: a token plus role (winner | loser | group); None = seeded
    player1_source: Optional[str] = Field(default=None)
    player1_source_role: Optional[str] = Field(default=None)
    player2_source: Optional[str] = Field(default=None)
    player2_source_role: Optional[str] = Field(default=None)

    depends_on_matches: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    feeds_into_match: Optional[str] = Field(default=None)
    feeds_into_slot: Optional[int] = Field(default=None)  # 1 | 2; None -> legacy parity rule
    loser_feeds_into_match: Optional[str] = Field(default=None)
    loser_feeds_into_slot: Optional[int] = Field(default=None)

    status: str = Field(default=MATCH_PENDING, index=True)  # pending | ready | active | completed | bye
    winner_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    player1_score: Optional[int] = Field(default=None)
    player2_score: Optional[int] = Field(default=None)
    score_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    forfeit: Optional[str] = Field(default=None)  # player1 | player2 | double
    admin_notes: Optional[str] = Field(default=None)

    deadline: Optional[datetime] = Field(default=None, index=True)
    player1_submitted_at: Optional[datetime] = Field(default=None)
    player2_submitted_at: Optional[datetime] = Field(default=None)
    reminder_sent: bool = Field(default=False)
    warning_sent: bool = Field(default=False)

    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)

    tournament: "Tournament" = Relationship(back_populates="matches")

    def occupants(self) -> List[int]:
        return [p for p in (self.player1_id, self.player2_id) if p is not None]

    def opponent_of(self, participant_id: int) -> Optional[int]:
        if participant_id == self.player1_id:
            return self.player2_id
        if participant_id == self.player2_id:
            return self.player1_id
        return None
