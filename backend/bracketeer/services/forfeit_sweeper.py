"""
Forfeit Sweeper

Clock-driven pass over a tournament's active matches whose deadline has passed:
- exactly one side submitted a result by the deadline: that side wins by forfeit
- neither side submitted: double forfeit (completed, no winner, nothing fed forward)
- both sides submitted: left alone for organizer verification

Forfeit wins go through ProgressionService.resolve_match exactly like reported results.
Also sends the once-per-match deadline reminder / final warning notifications.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from bracketeer.config import REMINDER_WINDOW_HOURS, WARNING_WINDOW_HOURS
from bracketeer.models.match import FORFEIT_PLAYER1, FORFEIT_PLAYER2, MATCH_ACTIVE, Match
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import Tournament
from bracketeer.services import notification_service as notify
from bracketeer.services.errors import AlreadyResolved, MatchNotReady, TournamentNotFound
from bracketeer.services.notification_service import NotificationRequest, NotificationSink
from bracketeer.services.progression_service import ProgressionResult, ProgressionService
from bracketeer.utils.time import utcnow

logger = logging.getLogger(__name__)

OUTCOME_FORFEIT = "forfeit"
OUTCOME_DOUBLE_FORFEIT = "double_forfeit"
OUTCOME_SKIPPED = "skipped"

PLAYER1_FORFEIT_NOTE = "Player 1 forfeit (missed deadline)"
PLAYER2_FORFEIT_NOTE = "Player 2 forfeit (missed deadline)"
DOUBLE_FORFEIT_NOTE = "Both players forfeit (missed deadline)"


@dataclass
class ForfeitResult:
    match_id: int
    bracket_position: str
    outcome: str  # forfeit | double_forfeit | skipped
    winner_id: Optional[int]
    reason: str
    progression: Optional[ProgressionResult] = None


def _submitted_in_time(submitted_at: Optional[datetime], deadline: Optional[datetime]) -> bool:
    return submitted_at is not None and (deadline is None or submitted_at <= deadline)


def _require_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    return tournament


def sweep_expired(
    session: Session,
    tournament_id: int,
    now: Optional[datetime] = None,
    sink: Optional[NotificationSink] = None,
) -> List[ForfeitResult]:
    """Forfeit every active match of the tournament whose deadline is before ``now``."""
    now = now or utcnow()
    _require_tournament(session, tournament_id)

    expired = session.exec(
        select(Match)
        .where(Match.tournament_id == tournament_id)
        .where(Match.status == MATCH_ACTIVE)
        .where(Match.deadline.is_not(None))
        .where(Match.deadline < now)
        .order_by(Match.round_number, Match.id)
    ).all()
    if not expired:
        return []

    service = ProgressionService(session, sink, clock=lambda: now)
    results: List[ForfeitResult] = []

    for match in expired:
        match_id, position = match.id, match.bracket_position
        p1_in = _submitted_in_time(match.player1_submitted_at, match.deadline)
        p2_in = _submitted_in_time(match.player2_submitted_at, match.deadline)

        if p1_in and p2_in:
            logger.info("Match %s (%s) past deadline with both results in; awaiting verification", match_id, position)
            results.append(ForfeitResult(match_id, position, OUTCOME_SKIPPED, None, "Both results submitted"))
            continue

        try:
            if p1_in or p2_in:
                winner_id = match.player1_id if p1_in else match.player2_id
                reason = PLAYER2_FORFEIT_NOTE if p1_in else PLAYER1_FORFEIT_NOTE
                progression = service.resolve_match(
                    match_id,
                    winner_id,
                    forfeit=FORFEIT_PLAYER2 if p1_in else FORFEIT_PLAYER1,
                    admin_notes=reason,
                )
                results.append(ForfeitResult(match_id, position, OUTCOME_FORFEIT, winner_id, reason, progression))
                logger.info("Match %s (%s): %s", match_id, position, reason)
            else:
                progression = service.record_double_forfeit(match_id, DOUBLE_FORFEIT_NOTE)
                results.append(
                    ForfeitResult(match_id, position, OUTCOME_DOUBLE_FORFEIT, None, DOUBLE_FORFEIT_NOTE, progression)
                )
                logger.info("Match %s (%s): %s", match_id, position, DOUBLE_FORFEIT_NOTE)
        except (AlreadyResolved, MatchNotReady) as e:
            # Resolved by a concurrent report between our read and the write
            logger.info("Match %s changed while sweeping (%s); skipped", match_id, e.code)
            results.append(ForfeitResult(match_id, position, OUTCOME_SKIPPED, None, e.message))

    return results


def send_deadline_reminders(
    session: Session,
    tournament_id: int,
    now: Optional[datetime] = None,
    sink: Optional[NotificationSink] = None,
) -> int:
    """
    Queue a reminder when a deadline enters the reminder window and a final warning
    when it enters the warning window. Each is sent at most once per match.
    Returns the number of notification requests handed to the sink.
    """
    now = now or utcnow()
    tournament = _require_tournament(session, tournament_id)
    reminder_cutoff = now + timedelta(hours=REMINDER_WINDOW_HOURS)
    warning_cutoff = now + timedelta(hours=WARNING_WINDOW_HOURS)

    matches = session.exec(
        select(Match)
        .where(Match.tournament_id == tournament_id)
        .where(Match.status == MATCH_ACTIVE)
        .where(Match.deadline.is_not(None))
        .where(Match.deadline > now)
        .where(Match.deadline <= reminder_cutoff)
    ).all()
    participants = {
        p.id: p for p in session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    }

    requests: List[NotificationRequest] = []
    for match in matches:
        if match.deadline <= warning_cutoff and not match.warning_sent:
            flag, kind, title = "warning_sent", notify.DEADLINE_WARNING, "Match deadline approaching"
            extra = {"reminder_sent": True}
        elif not match.reminder_sent and not match.warning_sent:
            flag, kind, title = "reminder_sent", notify.DEADLINE_REMINDER, "Match deadline reminder"
            extra = {}
        else:
            continue

        claimed = session.execute(
            update(Match)
            .where(Match.id == match.id, getattr(Match, flag).is_(False))
            .values({flag: True, **extra})
            .execution_options(synchronize_session=False)
        )
        session.refresh(match)
        if claimed.rowcount != 1:
            continue

        hours_left = max(0, int((match.deadline - now).total_seconds() // 3600))
        for pid in match.occupants():
            p = participants.get(pid)
            if p is None:
                continue
            submitted = match.player1_submitted_at if pid == match.player1_id else match.player2_submitted_at
            if submitted is not None:
                continue
            requests.append(
                NotificationRequest(
                    recipient_id=p.user_id,
                    tournament_id=tournament_id,
                    type=kind,
                    title=title,
                    message=(
                        f"Your {tournament.name} match {match.bracket_position} is due in about {hours_left}h. "
                        "Submit your result to avoid a forfeit."
                    ),
                    match_id=match.id,
                )
            )

    session.commit()

    if requests and sink is not None:
        try:
            sink.enqueue(requests)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to enqueue %s deadline notifications", len(requests))
            return 0
    logger.info("Queued %s deadline notifications for tournament %s", len(requests), tournament_id)
    return len(requests)
