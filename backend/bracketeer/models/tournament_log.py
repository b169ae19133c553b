from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from bracketeer.utils.time import utcnow


class TournamentLog(SQLModel, table=True):
    __tablename__ = "tournament_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_id: Optional[int] = Field(default=None)
    participant_id: Optional[int] = Field(default=None)
    # bracket_generated | match_result | auto_advance | auto_bye | auto_forfeit | double_forfeit |
    # winner_override | round_complete | group_stage_complete | tournament_complete
    action_type: str
    description: str
    metadata_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=utcnow)
