from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator, model_validator
from sqlmodel import Session, select

from bracketeer.config import MAX_PARTICIPANTS, MIN_PARTICIPANTS
from bracketeer.database import get_session
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import (
    ACTIVATION_IMMEDIATE,
    ACTIVATION_ROUND,
    FORMAT_SINGLE_ELIMINATION,
    SUPPORTED_FORMATS,
    TOURNAMENT_UPCOMING,
    Tournament,
)
from bracketeer.models.tournament_log import TournamentLog
from bracketeer.services.seeding import POLICY_STANDARD, SEEDING_POLICIES
from bracketeer.utils.sql import count_rows

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    format: str = FORMAT_SINGLE_ELIMINATION
    seeding_policy: str = POLICY_STANDARD
    capacity: int = MAX_PARTICIPANTS
    round_duration_hours: Optional[int] = None
    activation_mode: str = ACTIVATION_IMMEDIATE
    group_count: int = 4
    knockout_slots_per_group: int = 2
    custom_format: Optional[str] = None
    random_seed: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        if v not in SUPPORTED_FORMATS:
            raise ValueError(f"format must be one of {', '.join(SUPPORTED_FORMATS)}")
        return v

    @field_validator("seeding_policy")
    @classmethod
    def validate_seeding_policy(cls, v):
        if v not in SEEDING_POLICIES:
            raise ValueError(f"seeding_policy must be one of {', '.join(SEEDING_POLICIES)}")
        return v

    @field_validator("activation_mode")
    @classmethod
    def validate_activation_mode(cls, v):
        if v not in (ACTIVATION_IMMEDIATE, ACTIVATION_ROUND):
            raise ValueError("activation_mode must be 'immediate' or 'round'")
        return v

    @model_validator(mode="after")
    def validate_limits(self):
        if not MIN_PARTICIPANTS <= self.capacity <= MAX_PARTICIPANTS:
            raise ValueError(f"capacity must be between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS}")
        if self.round_duration_hours is not None and self.round_duration_hours < 1:
            raise ValueError("round_duration_hours must be >= 1")
        if self.group_count < 1 or self.knockout_slots_per_group < 1:
            raise ValueError("group_count and knockout_slots_per_group must be >= 1")
        return self


class TournamentResponse(BaseModel):
    id: int
    name: str
    format: str
    seeding_policy: str
    capacity: int
    status: str
    round_duration_hours: Optional[int] = None
    activation_mode: str
    group_count: int
    knockout_slots_per_group: int
    custom_format: Optional[str] = None
    winner_participant_id: Optional[int] = None
    bracket_generated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ParticipantCreate(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    skill_rating: Optional[float] = None
    seed: Optional[int] = None

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v):
        if not v or not v.strip():
            raise ValueError("user_id is required")
        return v.strip()

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v):
        if v is not None and v < 1:
            raise ValueError("seed must be >= 1")
        return v


class ParticipantResponse(BaseModel):
    id: int
    tournament_id: int
    user_id: str
    display_name: Optional[str] = None
    skill_rating: Optional[float] = None
    seed: Optional[int] = None
    joined_at: datetime

    class Config:
        from_attributes = True


class TournamentLogResponse(BaseModel):
    id: int
    tournament_id: int
    match_id: Optional[int] = None
    participant_id: Optional[int] = None
    action_type: str
    description: str
    metadata_json: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _get_tournament_or_404(session, tournament_id)


@router.post("/tournaments/{tournament_id}/participants", response_model=ParticipantResponse, status_code=201)
def register_participant(
    tournament_id: int,
    participant_data: ParticipantCreate,
    session: Session = Depends(get_session),
):
    """Register a participant while the tournament is still upcoming and below capacity"""
    tournament = _get_tournament_or_404(session, tournament_id)
    if tournament.status != TOURNAMENT_UPCOMING:
        raise HTTPException(status_code=409, detail=f"Registration closed: tournament is {tournament.status}")

    count = count_rows(session, Participant.id, Participant.tournament_id == tournament_id)
    if count >= tournament.capacity:
        raise HTTPException(status_code=409, detail=f"Tournament is full ({tournament.capacity} participants)")

    existing = session.exec(
        select(Participant).where(
            Participant.tournament_id == tournament_id, Participant.user_id == participant_data.user_id
        )
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"User {participant_data.user_id} is already registered")

    participant = Participant(tournament_id=tournament_id, **participant_data.model_dump())
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    return session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
    ).all()


@router.get("/tournaments/{tournament_id}/logs", response_model=List[TournamentLogResponse])
def list_logs(tournament_id: int, action_type: Optional[str] = None, session: Session = Depends(get_session)):
    """Audit trail: generation, advancements, byes, forfeits, round and tournament completion"""
    _get_tournament_or_404(session, tournament_id)
    query = select(TournamentLog).where(TournamentLog.tournament_id == tournament_id)
    if action_type:
        query = query.where(TournamentLog.action_type == action_type)
    return session.exec(query.order_by(TournamentLog.id)).all()
