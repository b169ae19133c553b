"""
Result submissions by match occupants and organizer verification.

A submission stamps the submitter's ``playerN_submitted_at`` (what the forfeit sweeper
reads). Two agreeing submissions resolve the match; otherwise an organizer approves
(optionally naming a different winner) or rejects.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session, select

from bracketeer.models.match import MATCH_ACTIVE, MATCH_READY, Match
from bracketeer.models.match_result import (
    SUBMISSION_APPROVED,
    SUBMISSION_PENDING,
    SUBMISSION_REJECTED,
    MatchResultSubmission,
)
from bracketeer.services.errors import (
    InvalidSubmission,
    InvalidWinner,
    MatchNotFound,
    MatchNotReady,
    SubmissionNotFound,
)
from bracketeer.services.notification_service import NotificationSink
from bracketeer.services.progression_service import ProgressionResult, ProgressionService
from bracketeer.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    submission: MatchResultSubmission
    progression: Optional[ProgressionResult] = None


def _load_match(session: Session, tournament_id: int, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament_id:
        raise MatchNotFound(match_id, tournament_id)
    return match


def submit_result(
    session: Session,
    tournament_id: int,
    match_id: int,
    submitted_by: int,
    winner_id: int,
    player1_score: Optional[int] = None,
    player2_score: Optional[int] = None,
    notes: Optional[str] = None,
    sink: Optional[NotificationSink] = None,
) -> SubmissionOutcome:
    match = _load_match(session, tournament_id, match_id)
    if match.status not in (MATCH_READY, MATCH_ACTIVE):
        raise MatchNotReady(match.id, match.status)
    if submitted_by not in match.occupants():
        raise InvalidSubmission(
            f"Participant {submitted_by} does not play in match {match_id}",
            match_id=match_id,
            submitted_by=submitted_by,
        )
    if winner_id not in match.occupants():
        raise InvalidWinner(match.id, winner_id, match.occupants())

    now = utcnow()
    submission = MatchResultSubmission(
        match_id=match.id,
        submitted_by=submitted_by,
        winner_id=winner_id,
        player1_score=player1_score,
        player2_score=player2_score,
        notes=notes,
    )
    if submitted_by == match.player1_id:
        match.player1_submitted_at = now
    else:
        match.player2_submitted_at = now
    session.add(submission)
    session.add(match)
    session.commit()
    session.refresh(submission)
    logger.info("Participant %s submitted a result for match %s (winner %s)", submitted_by, match_id, winner_id)

    # Both occupants agree -> resolve without waiting for an organizer
    opponent = match.opponent_of(submitted_by)
    opposing = session.exec(
        select(MatchResultSubmission)
        .where(MatchResultSubmission.match_id == match.id)
        .where(MatchResultSubmission.submitted_by == opponent)
        .where(MatchResultSubmission.status == SUBMISSION_PENDING)
        .order_by(MatchResultSubmission.id.desc())
    ).first()
    if opposing is None or opposing.winner_id != winner_id:
        return SubmissionOutcome(submission=submission)

    progression = ProgressionService(session, sink).resolve_match(
        match.id,
        winner_id,
        player1_score=player1_score,
        player2_score=player2_score,
        tournament_id=tournament_id,
    )
    _close_pending(session, match.id, SUBMISSION_APPROVED)
    session.refresh(submission)
    return SubmissionOutcome(submission=submission, progression=progression)


def verify_submission(
    session: Session,
    tournament_id: int,
    match_id: int,
    submission_id: int,
    approve: bool,
    winner_id: Optional[int] = None,
    sink: Optional[NotificationSink] = None,
) -> SubmissionOutcome:
    """Organizer decision on a pending submission. Approval resolves the match."""
    match = _load_match(session, tournament_id, match_id)
    submission = session.get(MatchResultSubmission, submission_id)
    if not submission or submission.match_id != match.id:
        raise SubmissionNotFound(submission_id, match_id)
    if submission.status != SUBMISSION_PENDING:
        raise InvalidSubmission(
            f"Submission {submission_id} was already {submission.status}",
            submission_id=submission_id,
            status=submission.status,
        )

    if not approve:
        submission.status = SUBMISSION_REJECTED
        submission.reviewed_at = utcnow()
        session.add(submission)
        session.commit()
        session.refresh(submission)
        logger.info("Submission %s for match %s rejected", submission_id, match_id)
        return SubmissionOutcome(submission=submission)

    final_winner = winner_id if winner_id is not None else submission.winner_id
    progression = ProgressionService(session, sink).resolve_match(
        match.id,
        final_winner,
        player1_score=submission.player1_score,
        player2_score=submission.player2_score,
        admin_notes=None if final_winner == submission.winner_id else "Winner set by organizer on verification",
        tournament_id=tournament_id,
    )
    _close_pending(session, match.id, SUBMISSION_APPROVED, only_id=submission.id)
    _close_pending(session, match.id, SUBMISSION_REJECTED)
    session.refresh(submission)
    return SubmissionOutcome(submission=submission, progression=progression)


def _close_pending(session: Session, match_id: int, status: str, only_id: Optional[int] = None) -> None:
    query = (
        select(MatchResultSubmission)
        .where(MatchResultSubmission.match_id == match_id)
        .where(MatchResultSubmission.status == SUBMISSION_PENDING)
    )
    if only_id is not None:
        query = query.where(MatchResultSubmission.id == only_id)
    now = utcnow()
    for sub in session.exec(query).all():
        sub.status = status
        sub.reviewed_at = now
        session.add(sub)
    session.commit()
