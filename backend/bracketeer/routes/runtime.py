"""
Runtime: result reporting, submissions, organizer overrides and clock-driven passes.
Every result goes through ProgressionService, which fills downstream slots, closes
rounds and completes the tournament.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from bracketeer.database import get_session
from bracketeer.models.match import Match
from bracketeer.models.tournament import Tournament
from bracketeer.routes.brackets import MatchResponse
from bracketeer.services.errors import BracketEngineError
from bracketeer.services.forfeit_sweeper import send_deadline_reminders, sweep_expired
from bracketeer.services.notification_service import NotificationSink, get_notification_sink
from bracketeer.services.progression_service import ProgressionResult, ProgressionService
from bracketeer.services.result_submission import submit_result, verify_submission
from bracketeer.utils.http_errors import to_http_exception
from bracketeer.utils.time import as_naive_utc

router = APIRouter()


class ReportResultRequest(BaseModel):
    winner_id: int
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None


class OverrideWinnerRequest(BaseModel):
    winner_id: int
    admin_notes: Optional[str] = None


class ProgressionResponse(BaseModel):
    match: MatchResponse
    already_resolved: bool
    advanced_to_next_round: bool
    advanced_to: Optional[str] = None
    loser_routed_to: Optional[str] = None
    tournament_complete: bool
    winner: Optional[int] = None
    activated_match_ids: List[int] = []
    completed_rounds: List[str] = []
    auto_resolved_byes: List[str] = []


class SubmissionCreate(BaseModel):
    submitted_by: int
    winner_id: int
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    notes: Optional[str] = None


class SubmissionVerify(BaseModel):
    approve: bool = True
    winner_id: Optional[int] = None


class SubmissionResponse(BaseModel):
    id: int
    match_id: int
    submitted_by: int
    winner_id: int
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    notes: Optional[str] = None
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionOutcomeResponse(BaseModel):
    submission: SubmissionResponse
    resolved: bool
    progression: Optional[ProgressionResponse] = None


class ClockRequest(BaseModel):
    now: Optional[datetime] = None


class ForfeitResultResponse(BaseModel):
    match_id: int
    bracket_position: str
    outcome: str
    winner_id: Optional[int] = None
    reason: str
    advanced_to: Optional[str] = None
    tournament_complete: bool = False


class RemindersResponse(BaseModel):
    tournament_id: int
    queued: int


def _require_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _progression_response(session: Session, result: ProgressionResult) -> ProgressionResponse:
    match = session.get(Match, result.match_id)
    session.refresh(match)
    return ProgressionResponse(
        match=MatchResponse.model_validate(match),
        already_resolved=result.already_resolved,
        advanced_to_next_round=result.advanced_to_next_round,
        advanced_to=result.advanced_to,
        loser_routed_to=result.loser_routed_to,
        tournament_complete=result.tournament_complete,
        winner=result.tournament_winner_id,
        activated_match_ids=result.activated_match_ids,
        completed_rounds=result.completed_rounds,
        auto_resolved_byes=result.auto_resolved_byes,
    )


def _clock(request: Optional[ClockRequest]) -> Optional[datetime]:
    return as_naive_utc(request.now) if request and request.now else None


@router.post("/tournaments/{tournament_id}/matches/{match_id}/report-result", response_model=ProgressionResponse)
def report_result(
    tournament_id: int,
    match_id: int,
    body: ReportResultRequest,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Organizer-reported result; repeating the same winner is a no-op"""
    _require_tournament(session, tournament_id)
    try:
        result = ProgressionService(session, sink).resolve_match(
            match_id,
            body.winner_id,
            player1_score=body.player1_score,
            player2_score=body.player2_score,
            tournament_id=tournament_id,
        )
    except BracketEngineError as e:
        raise to_http_exception(e)
    return _progression_response(session, result)


@router.post(
    "/tournaments/{tournament_id}/matches/{match_id}/submissions",
    response_model=SubmissionOutcomeResponse,
    status_code=201,
)
def create_submission(
    tournament_id: int,
    match_id: int,
    body: SubmissionCreate,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    _require_tournament(session, tournament_id)
    try:
        outcome = submit_result(
            session,
            tournament_id,
            match_id,
            submitted_by=body.submitted_by,
            winner_id=body.winner_id,
            player1_score=body.player1_score,
            player2_score=body.player2_score,
            notes=body.notes,
            sink=sink,
        )
    except BracketEngineError as e:
        raise to_http_exception(e)
    return SubmissionOutcomeResponse(
        submission=SubmissionResponse.model_validate(outcome.submission),
        resolved=outcome.progression is not None,
        progression=_progression_response(session, outcome.progression) if outcome.progression else None,
    )


@router.post(
    "/tournaments/{tournament_id}/matches/{match_id}/submissions/{submission_id}/verify",
    response_model=SubmissionOutcomeResponse,
)
def verify_match_submission(
    tournament_id: int,
    match_id: int,
    submission_id: int,
    body: SubmissionVerify,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Approve (optionally with a different winner) or reject a pending submission"""
    _require_tournament(session, tournament_id)
    try:
        outcome = verify_submission(
            session,
            tournament_id,
            match_id,
            submission_id,
            approve=body.approve,
            winner_id=body.winner_id,
            sink=sink,
        )
    except BracketEngineError as e:
        raise to_http_exception(e)
    return SubmissionOutcomeResponse(
        submission=SubmissionResponse.model_validate(outcome.submission),
        resolved=outcome.progression is not None,
        progression=_progression_response(session, outcome.progression) if outcome.progression else None,
    )


@router.post("/tournaments/{tournament_id}/matches/{match_id}/override-winner", response_model=ProgressionResponse)
def override_double_forfeit(
    tournament_id: int,
    match_id: int,
    body: OverrideWinnerRequest,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Assign the advancing participant of an unresolved double forfeit"""
    _require_tournament(session, tournament_id)
    try:
        result = ProgressionService(session, sink).assign_advancing_player(
            match_id, body.winner_id, admin_notes=body.admin_notes, tournament_id=tournament_id
        )
    except BracketEngineError as e:
        raise to_http_exception(e)
    return _progression_response(session, result)


@router.post("/tournaments/{tournament_id}/sweep-forfeits", response_model=List[ForfeitResultResponse])
def sweep_forfeits(
    tournament_id: int,
    body: Optional[ClockRequest] = None,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Forfeit active matches past their deadline (``now`` defaults to the server clock)"""
    try:
        results = sweep_expired(session, tournament_id, now=_clock(body), sink=sink)
    except BracketEngineError as e:
        raise to_http_exception(e)
    return [
        ForfeitResultResponse(
            match_id=r.match_id,
            bracket_position=r.bracket_position,
            outcome=r.outcome,
            winner_id=r.winner_id,
            reason=r.reason,
            advanced_to=r.progression.advanced_to if r.progression else None,
            tournament_complete=r.progression.tournament_complete if r.progression else False,
        )
        for r in results
    ]


@router.post("/tournaments/{tournament_id}/send-reminders", response_model=RemindersResponse)
def send_reminders(
    tournament_id: int,
    body: Optional[ClockRequest] = None,
    session: Session = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
):
    try:
        queued = send_deadline_reminders(session, tournament_id, now=_clock(body), sink=sink)
    except BracketEngineError as e:
        raise to_http_exception(e)
    return RemindersResponse(tournament_id=tournament_id, queued=queued)
