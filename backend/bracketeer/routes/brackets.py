"""
Bracket generation and read endpoints: matches, rounds, standings.
"""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from bracketeer.database import get_session
from bracketeer.models.match import SIDE_GROUP, SIDE_ROUND_ROBIN, Match
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import Tournament
from bracketeer.models.tournament_round import TournamentRound
from bracketeer.services.bracket_generator import generate_bracket
from bracketeer.services.errors import BracketEngineError
from bracketeer.services.notification_service import NotificationSink, get_notification_sink
from bracketeer.services.standings import compute_standings, group_tables
from bracketeer.utils.http_errors import to_http_exception

router = APIRouter()


class GenerateBracketRequest(BaseModel):
    regenerate: bool = False


class GenerateBracketResponse(BaseModel):
    tournament_id: int
    format: str
    match_count: int
    bye_count: int
    rounds: Dict[str, int]
    activated_match_ids: List[int]
    seeded_participant_ids: List[int]


class MatchResponse(BaseModel):
    id: int
    tournament_id: int
    round_number: int
    match_number: int
    bracket_side: str
    group_index: int
    match_type: str
    bracket_position: str
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    player1_source: Optional[str] = None
    player2_source: Optional[str] = None
    depends_on_matches: List[str] = []
    feeds_into_match: Optional[str] = None
    feeds_into_slot: Optional[int] = None
    loser_feeds_into_match: Optional[str] = None
    loser_feeds_into_slot: Optional[int] = None
    status: str
    winner_id: Optional[int] = None
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    forfeit: Optional[str] = None
    admin_notes: Optional[str] = None
    deadline: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoundResponse(BaseModel):
    id: int
    bracket_side: str
    group_index: int
    round_number: int
    status: str
    deadline: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StandingRowResponse(BaseModel):
    participant_id: int
    display_name: str
    seed: Optional[int] = None
    played: int
    wins: int
    losses: int
    points: int
    group_index: int


class StandingsResponse(BaseModel):
    tournament_id: int
    overall: List[StandingRowResponse] = []
    groups: Dict[int, List[StandingRowResponse]] = {}


@router.post("/tournaments/{tournament_id}/generate-bracket", response_model=GenerateBracketResponse)
def generate_tournament_bracket(
    tournament_id: int,
    request: Optional[GenerateBracketRequest] = None,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Seed participants and create the full match set (regenerate discards existing matches)"""
    regenerate = request.regenerate if request else False
    try:
        result = generate_bracket(session, tournament_id, sink, regenerate=regenerate)
    except BracketEngineError as e:
        raise to_http_exception(e)
    return GenerateBracketResponse(**result.__dict__)


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    side: Optional[str] = None,
    round: Optional[int] = None,
    session: Session = Depends(get_session),
):
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    query = select(Match).where(Match.tournament_id == tournament_id)
    if side:
        query = query.where(Match.bracket_side == side)
    if round is not None:
        query = query.where(Match.round_number == round)
    return session.exec(
        query.order_by(Match.bracket_side, Match.group_index, Match.round_number, Match.match_number)
    ).all()


@router.get("/tournaments/{tournament_id}/rounds", response_model=List[RoundResponse])
def list_rounds(tournament_id: int, session: Session = Depends(get_session)):
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return session.exec(
        select(TournamentRound)
        .where(TournamentRound.tournament_id == tournament_id)
        .order_by(TournamentRound.bracket_side, TournamentRound.group_index, TournamentRound.round_number)
    ).all()


@router.get("/tournaments/{tournament_id}/standings", response_model=StandingsResponse)
def get_standings(tournament_id: int, session: Session = Depends(get_session)):
    """Round-robin table and per-group tables (3 points per win)"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    matches = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
    participants = {
        p.id: p for p in session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    }

    def rows(table) -> List[StandingRowResponse]:
        return [StandingRowResponse(**r.__dict__) for r in table]

    overall = compute_standings([m for m in matches if m.bracket_side == SIDE_ROUND_ROBIN], participants)
    groups = group_tables([m for m in matches if m.bracket_side == SIDE_GROUP], participants)
    return StandingsResponse(
        tournament_id=tournament_id,
        overall=rows(overall),
        groups={g: rows(table) for g, table in groups.items()},
    )
