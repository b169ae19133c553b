from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from bracketeer.utils.time import utcnow

if TYPE_CHECKING:
    from bracketeer.models.match import Match
    from bracketeer.models.participant import Participant
    from bracketeer.models.tournament_round import TournamentRound

FORMAT_SINGLE_ELIMINATION = "single_elimination"
FORMAT_DOUBLE_ELIMINATION = "double_elimination"
FORMAT_ROUND_ROBIN = "round_robin"
FORMAT_GROUP_STAGE = "group_stage"
FORMAT_CUSTOM = "custom"

SUPPORTED_FORMATS = (
    FORMAT_SINGLE_ELIMINATION,
    FORMAT_DOUBLE_ELIMINATION,
    FORMAT_ROUND_ROBIN,
    FORMAT_GROUP_STAGE,
    FORMAT_CUSTOM,
)

TOURNAMENT_UPCOMING = "upcoming"
TOURNAMENT_ONGOING = "ongoing"
TOURNAMENT_COMPLETED = "completed"

ACTIVATION_IMMEDIATE = "immediate"
ACTIVATION_ROUND = "round"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    format: str  # single_elimination | double_elimination | round_robin | group_stage | custom
    seeding_policy: str = Field(default="standard")  # standard | seeded | random
    capacity: int = Field(default=128)
    status: str = Field(default=TOURNAMENT_UPCOMING)  # upcoming | ongoing | completed

    # Deadline window for active matches (None -> DEFAULT_ROUND_DURATION_HOURS)
    round_duration_hours: Optional[int] = Field(default=None)
    activation_mode: str = Field(default=ACTIVATION_IMMEDIATE)  # immediate | round

    # Group stage / custom format settings
    group_count: int = Field(default=4)
    knockout_slots_per_group: int = Field(default=2)
    custom_format: Optional[str] = Field(default=None)  # mixed | single_elimination

    random_seed: Optional[int] = Field(default=None)

    # Participant.id of the champion; no FK to keep the tournament/participant graph acyclic
    winner_participant_id: Optional[int] = Field(default=None)
    bracket_generated_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="tournament")
    matches: List["Match"] = Relationship(back_populates="tournament")
    rounds: List["TournamentRound"] = Relationship(back_populates="tournament")
