"""
Progression Service

Applies a match outcome to the bracket graph as one transactional unit:
1. Validate and flip the match to completed (conditional on it not being terminal yet)
2. Route the winner (and, in double elimination, the loser) into their target slots
3. Settle every touched match: fill -> ready/active, dead slot -> bye, cascading
4. Close rounds whose matches are all terminal and release the next round
5. Complete the tournament exactly once (final, grand final, round robin table)

Every status and slot write is conditional on the state read earlier, so a stale reader
gets AlreadyResolved / SlotConflict instead of overwriting a concurrent result.
Notifications are collected during the unit and handed to the sink after commit.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import Session, select

from bracketeer.config import DEFAULT_ROUND_DURATION_HOURS
from bracketeer.models.match import (
    FORFEIT_DOUBLE,
    MATCH_ACTIVE,
    MATCH_BYE,
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCH_READY,
    ROLE_GROUP,
    SIDE_GROUP,
    SIDE_KNOCKOUT,
    SIDE_ROUND_ROBIN,
    TERMINAL_STATUSES,
    TERMINAL_TYPES,
    Match,
)
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import ACTIVATION_ROUND, TOURNAMENT_COMPLETED, Tournament
from bracketeer.models.tournament_log import TournamentLog
from bracketeer.models.tournament_round import ROUND_ACTIVE, ROUND_COMPLETED, ROUND_PENDING, TournamentRound
from bracketeer.services import notification_service as notify
from bracketeer.services.bracket_keys import BracketKey, parse_group_place_token
from bracketeer.services.dependency_index import DependencyIndex
from bracketeer.services.errors import (
    AlreadyResolved,
    InvalidWinner,
    MatchNotFound,
    MatchNotReady,
    NotDoubleForfeit,
    SlotConflict,
)
from bracketeer.services.match_state import Bye, Completed, DoubleForfeit, Pending, match_state
from bracketeer.services.notification_service import NotificationRequest, NotificationSink
from bracketeer.services.standings import compute_standings, group_tables
from bracketeer.utils.retry import run_with_retry
from bracketeer.utils.sql import count_rows
from bracketeer.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ProgressionResult:
    match_id: int
    winner_id: Optional[int]
    already_resolved: bool = False
    advanced_to: Optional[str] = None
    loser_routed_to: Optional[str] = None
    activated_match_ids: List[int] = field(default_factory=list)
    completed_rounds: List[str] = field(default_factory=list)
    auto_resolved_byes: List[str] = field(default_factory=list)
    tournament_complete: bool = False
    tournament_winner_id: Optional[int] = None
    notifications_queued: int = 0

    @property
    def advanced_to_next_round(self) -> bool:
        return self.advanced_to is not None


@dataclass
class _Cycle:
    """State shared by one unit of work: the loaded bracket plus what changed."""

    tournament: Tournament
    index: DependencyIndex
    rounds: Dict[Tuple[str, int, int], TournamentRound]
    participants: Dict[int, Participant]
    activated: List[int] = field(default_factory=list)
    completed_rounds: List[str] = field(default_factory=list)
    byes: List[str] = field(default_factory=list)
    notifications: List[NotificationRequest] = field(default_factory=list)
    tournament_complete: bool = False
    tournament_winner_id: Optional[int] = None

    def fill(self, result: ProgressionResult) -> ProgressionResult:
        result.activated_match_ids = list(self.activated)
        result.completed_rounds = list(self.completed_rounds)
        result.auto_resolved_byes = list(self.byes)
        result.tournament_complete = self.tournament_complete
        result.tournament_winner_id = self.tournament_winner_id
        result.notifications_queued = len(self.notifications)
        return result


def round_label(side: str, round_number: int, group_index: int = 0) -> str:
    return BracketKey(side, round_number, 0, group_index).token.rsplit("M", 1)[0]


class ProgressionService:
    def __init__(
        self,
        session: Session,
        sink: Optional[NotificationSink] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.sink = sink
        self.clock = clock
        self._outgoing: List[NotificationRequest] = []

    def now(self) -> datetime:
        return self.clock()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def resolve_match(
        self,
        match_id: int,
        winner_id: int,
        player1_score: Optional[int] = None,
        player2_score: Optional[int] = None,
        forfeit: Optional[str] = None,
        admin_notes: Optional[str] = None,
        tournament_id: Optional[int] = None,
    ) -> ProgressionResult:
        """
        Record ``winner_id`` as the winner of ``match_id`` and advance the bracket.

        Re-resolving with the recorded winner is a no-op (``already_resolved=True``).

        Raises:
            MatchNotFound, MatchNotReady, InvalidWinner, AlreadyResolved, SlotConflict,
            DependentMatchNotFound
        """

        def unit_of_work() -> ProgressionResult:
            match = self._load_match(match_id, tournament_id)
            state = match_state(match)

            if isinstance(state, (Completed, Bye)):
                if state.winner_id == winner_id:
                    return ProgressionResult(match_id=match.id, winner_id=winner_id, already_resolved=True)
                raise AlreadyResolved(match.id, state.winner_id, winner_id)
            if isinstance(state, DoubleForfeit):
                raise AlreadyResolved(match.id, None, winner_id)
            if isinstance(state, Pending):
                raise MatchNotReady(match.id, match.status)
            if winner_id not in (state.player1_id, state.player2_id):
                raise InvalidWinner(match.id, winner_id, match.occupants())

            values = {
                "status": MATCH_COMPLETED,
                "winner_id": winner_id,
                "completed_at": self.now(),
            }
            if player1_score is not None:
                values["player1_score"] = player1_score
            if player2_score is not None:
                values["player2_score"] = player2_score
            if forfeit is not None:
                values["forfeit"] = forfeit
            if admin_notes is not None:
                values["admin_notes"] = admin_notes

            if not self._transition(match, values):
                if match.status == MATCH_COMPLETED and match.winner_id == winner_id:
                    return ProgressionResult(match_id=match.id, winner_id=winner_id, already_resolved=True)
                raise AlreadyResolved(match.id, match.winner_id, winner_id)

            cycle = self._open_cycle(match.tournament_id)
            result = ProgressionResult(match_id=match.id, winner_id=winner_id)
            action = "auto_forfeit" if forfeit else "match_result"
            self.log(
                match.tournament_id,
                action,
                f"{match.bracket_position}: {self._name(cycle, winner_id)} wins",
                match_id=match.id,
                participant_id=winner_id,
                metadata={"forfeit": forfeit} if forfeit else None,
            )
            self._after_result(cycle, match, winner_id, match.opponent_of(winner_id), result)
            self._check_round(cycle, match)
            self.session.commit()
            self._outgoing = list(cycle.notifications)
            return cycle.fill(result)

        result = self._run(unit_of_work)
        if not result.already_resolved:
            logger.info(
                "Match %s resolved: winner=%s advanced_to=%s complete=%s",
                match_id,
                winner_id,
                result.advanced_to,
                result.tournament_complete,
            )
        return result

    def record_double_forfeit(
        self, match_id: int, admin_notes: str = "Both players forfeit (missed deadline)"
    ) -> ProgressionResult:
        """Close an active match with no winner. Nothing is fed forward."""

        def unit_of_work() -> ProgressionResult:
            match = self._load_match(match_id)
            state = match_state(match)
            if isinstance(state, DoubleForfeit):
                return ProgressionResult(match_id=match.id, winner_id=None, already_resolved=True)
            if isinstance(state, (Completed, Bye)):
                raise AlreadyResolved(match.id, state.winner_id, None)
            if isinstance(state, Pending):
                raise MatchNotReady(match.id, match.status)

            ok = self._transition(
                match,
                {
                    "status": MATCH_COMPLETED,
                    "winner_id": None,
                    "forfeit": FORFEIT_DOUBLE,
                    "admin_notes": admin_notes,
                    "completed_at": self.now(),
                },
            )
            if not ok:
                raise AlreadyResolved(match.id, match.winner_id, None)

            cycle = self._open_cycle(match.tournament_id)
            for pid in match.occupants():
                self._notify(
                    cycle,
                    pid,
                    notify.MATCH_FORFEITED,
                    "Match forfeited",
                    f"Your {match.bracket_position} match was closed: {admin_notes}",
                    match.id,
                )
            self.log(match.tournament_id, "double_forfeit", f"{match.bracket_position}: {admin_notes}", match_id=match.id)
            self._check_round(cycle, match)
            self._check_stage_complete(cycle, match)
            self.session.commit()
            self._outgoing = list(cycle.notifications)
            return cycle.fill(ProgressionResult(match_id=match.id, winner_id=None))

        return self._run(unit_of_work)

    def assign_advancing_player(
        self,
        match_id: int,
        participant_id: int,
        admin_notes: Optional[str] = None,
        tournament_id: Optional[int] = None,
    ) -> ProgressionResult:
        """
        Organizer override for a double forfeit: name the occupant who advances, then
        route them (and the other occupant as loser) exactly as a normal result would.
        """

        def unit_of_work() -> ProgressionResult:
            match = self._load_match(match_id, tournament_id)
            state = match_state(match)
            if not isinstance(state, DoubleForfeit):
                raise NotDoubleForfeit(match.id, match.status)
            if participant_id not in (state.player1_id, state.player2_id):
                raise InvalidWinner(match.id, participant_id, match.occupants())

            note = admin_notes or f"Organizer advanced participant {participant_id} after double forfeit"
            combined = f"{match.admin_notes}; {note}" if match.admin_notes else note
            result = self.session.execute(
                update(Match)
                .where(Match.id == match.id, Match.winner_id.is_(None), Match.forfeit == FORFEIT_DOUBLE)
                .values(winner_id=participant_id, admin_notes=combined)
                .execution_options(synchronize_session=False)
            )
            self.session.refresh(match)
            if result.rowcount != 1:
                raise AlreadyResolved(match.id, match.winner_id, participant_id)

            cycle = self._open_cycle(match.tournament_id)
            outcome = ProgressionResult(match_id=match.id, winner_id=participant_id)
            self.log(
                match.tournament_id,
                "winner_override",
                f"{match.bracket_position}: {note}",
                match_id=match.id,
                participant_id=participant_id,
            )
            self._after_result(cycle, match, participant_id, match.opponent_of(participant_id), outcome)
            self.session.commit()
            self._outgoing = list(cycle.notifications)
            return cycle.fill(outcome)

        return self._run(unit_of_work)

    def settle_new_bracket(self, tournament: Tournament, matches: Sequence[Match]) -> ProgressionResult:
        """
        Resolve byes and activate playable matches of a freshly flushed bracket.
        Runs inside the caller's transaction; the caller commits and dispatches.
        """
        cycle = self._open_cycle(tournament.id, matches=matches, tournament=tournament)
        self._settle(cycle, [m.bracket_position for m in matches])
        self._outgoing = list(cycle.notifications)
        return cycle.fill(ProgressionResult(match_id=0, winner_id=None))

    def dispatch_notifications(self) -> int:
        """Hand collected notifications to the sink; delivery failures never undo the commit."""
        outgoing, self._outgoing = self._outgoing, []
        if not outgoing or self.sink is None:
            return 0
        try:
            self.sink.enqueue(outgoing)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to enqueue %s notifications", len(outgoing))
            return 0
        return len(outgoing)

    def log(
        self,
        tournament_id: int,
        action_type: str,
        description: str,
        match_id: Optional[int] = None,
        participant_id: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        self.session.add(
            TournamentLog(
                tournament_id=tournament_id,
                match_id=match_id,
                participant_id=participant_id,
                action_type=action_type,
                description=description,
                metadata_json=metadata,
            )
        )

    # ------------------------------------------------------------------
    # Unit of work plumbing
    # ------------------------------------------------------------------

    def _run(self, unit_of_work: Callable[[], ProgressionResult]) -> ProgressionResult:
        self._outgoing = []
        try:
            result = run_with_retry(unit_of_work, self.session)
        except Exception:
            self.session.rollback()
            self._outgoing = []
            raise
        self.dispatch_notifications()
        return result

    def _load_match(self, match_id: int, tournament_id: Optional[int] = None) -> Match:
        match = self.session.get(Match, match_id, populate_existing=True)
        if not match or (tournament_id is not None and match.tournament_id != tournament_id):
            raise MatchNotFound(match_id, tournament_id)
        return match

    def _open_cycle(
        self,
        tournament_id: int,
        matches: Optional[Sequence[Match]] = None,
        tournament: Optional[Tournament] = None,
    ) -> _Cycle:
        tournament = tournament or self.session.get(Tournament, tournament_id)
        index = DependencyIndex(tournament_id, matches) if matches is not None else DependencyIndex.load(self.session, tournament_id)
        rounds = {
            (r.bracket_side, r.group_index, r.round_number): r
            for r in self.session.exec(select(TournamentRound).where(TournamentRound.tournament_id == tournament_id)).all()
        }
        participants = {
            p.id: p
            for p in self.session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
        }
        return _Cycle(tournament=tournament, index=index, rounds=rounds, participants=participants)

    def _transition(self, match: Match, values: dict) -> bool:
        """Conditional write: applies ``values`` only while the match is not terminal."""
        result = self.session.execute(
            update(Match)
            .where(Match.id == match.id, Match.status.not_in(TERMINAL_STATUSES))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.refresh(match)
            return False
        for key, value in values.items():
            set_committed_value(match, key, value)
        return True

    def _place(self, target: Match, slot: int, participant_id: int) -> None:
        """Conditional slot write: only into an empty slot, or a no-op if already ours."""
        attr = f"player{slot}_id"
        column = getattr(Match, attr)
        result = self.session.execute(
            update(Match)
            .where(Match.id == target.id, column.is_(None))
            .values({attr: participant_id})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            # The sibling slot may have been written by another result since the index was loaded
            self.session.refresh(target, ["player1_id", "player2_id", "status"])
            return
        self.session.refresh(target, [attr])
        actual = getattr(target, attr)
        if actual != participant_id:
            raise SlotConflict(target.id, slot, participant_id, actual)

    # ------------------------------------------------------------------
    # Graph propagation
    # ------------------------------------------------------------------

    def _after_result(
        self,
        cycle: _Cycle,
        match: Match,
        winner_id: Optional[int],
        loser_id: Optional[int],
        result: Optional[ProgressionResult] = None,
    ) -> None:
        if match.match_type in TERMINAL_TYPES and winner_id is not None:
            self._complete_tournament(cycle, winner_id)
            return

        touched = self._route(cycle, match, winner_id, loser_id)
        if result is not None:
            if winner_id is not None and match.feeds_into_match:
                result.advanced_to = match.feeds_into_match
            if loser_id is not None and match.loser_feeds_into_match:
                result.loser_routed_to = match.loser_feeds_into_match
        self._settle(cycle, touched)
        self._check_stage_complete(cycle, match)

    def _route(self, cycle: _Cycle, match: Match, winner_id: Optional[int], loser_id: Optional[int]) -> List[str]:
        touched = []
        if match.feeds_into_match:
            target = cycle.index.get(match.feeds_into_match, match.id)
            # Rows written before slots were stored explicitly: odd match -> slot 1
            slot = match.feeds_into_slot or (1 if match.match_number % 2 == 1 else 2)
            if winner_id is not None:
                self._place(target, slot, winner_id)
                self.log(
                    match.tournament_id,
                    "auto_advance",
                    f"{self._name(cycle, winner_id)} advances from {match.bracket_position} to {target.bracket_position}",
                    match_id=target.id,
                    participant_id=winner_id,
                    metadata={"from": match.bracket_position, "slot": slot},
                )
            touched.append(target.bracket_position)
        if match.loser_feeds_into_match:
            target = cycle.index.get(match.loser_feeds_into_match, match.id)
            slot = match.loser_feeds_into_slot or (1 if match.match_number % 2 == 1 else 2)
            if loser_id is not None:
                self._place(target, slot, loser_id)
            touched.append(target.bracket_position)
        return touched

    def _slot_dead(self, cycle: _Cycle, match: Match, slot: int) -> bool:
        """An empty slot that can never be filled."""
        if getattr(match, f"player{slot}_id") is not None:
            return False
        source = getattr(match, f"player{slot}_source")
        if not source:
            return True
        if getattr(match, f"player{slot}_source_role") == ROLE_GROUP:
            return self._group_stage_done(cycle)
        feeder = cycle.index.get(source, match.id)
        # A bye has no loser, and its winner (if any) was already written forward
        return feeder.status == MATCH_BYE

    def _settle(self, cycle: _Cycle, tokens: Iterable[str]) -> None:
        queue = deque(tokens)
        while queue:
            match = cycle.index.get(queue.popleft())
            if match.status in TERMINAL_STATUSES:
                continue

            if match.player1_id is not None and match.player2_id is not None:
                if match.status == MATCH_PENDING:
                    match.status = MATCH_READY
                    self.session.add(match)
                if match.status == MATCH_READY and self._may_activate(cycle, match):
                    self._activate(cycle, match)
                continue

            dead1 = self._slot_dead(cycle, match, 1)
            dead2 = self._slot_dead(cycle, match, 2)
            if not ((dead1 or match.player1_id is not None) and (dead2 or match.player2_id is not None)):
                continue

            winner_id = match.player1_id if match.player1_id is not None else match.player2_id
            note = "Auto-advance (bye)" if winner_id is not None else "Empty match (no entrants)"
            if not self._transition(
                match,
                {"status": MATCH_BYE, "winner_id": winner_id, "admin_notes": note, "completed_at": self.now()},
            ):
                continue
            cycle.byes.append(match.bracket_position)
            self.log(
                match.tournament_id,
                "auto_bye",
                f"{match.bracket_position}: {note}",
                match_id=match.id,
                participant_id=winner_id,
            )
            if match.match_type in TERMINAL_TYPES and winner_id is not None:
                self._complete_tournament(cycle, winner_id)
            else:
                queue.extend(self._route(cycle, match, winner_id, None))
            self._check_round(cycle, match)

    def _may_activate(self, cycle: _Cycle, match: Match) -> bool:
        if cycle.tournament.activation_mode != ACTIVATION_ROUND or match.round_number == 1:
            return True
        previous = cycle.rounds.get((match.bracket_side, match.group_index, match.round_number - 1))
        return previous is None or previous.status == ROUND_COMPLETED

    def _activate(self, cycle: _Cycle, match: Match) -> None:
        now = self.now()
        hours = cycle.tournament.round_duration_hours or DEFAULT_ROUND_DURATION_HOURS
        match.status = MATCH_ACTIVE
        match.started_at = now
        match.deadline = now + timedelta(hours=hours)
        self.session.add(match)
        cycle.activated.append(match.id)

        row = cycle.rounds.get((match.bracket_side, match.group_index, match.round_number))
        if row is not None and row.status == ROUND_PENDING:
            row.status = ROUND_ACTIVE
            row.deadline = match.deadline
            self.session.add(row)

        for pid in match.occupants():
            opponent = self._name(cycle, match.opponent_of(pid))
            self._notify(
                cycle,
                pid,
                notify.MATCH_READY,
                "Match ready",
                f"Your {match.bracket_position} match against {opponent} is ready. "
                f"Deadline: {match.deadline:%Y-%m-%d %H:%M} UTC",
                match.id,
            )

    def _check_round(self, cycle: _Cycle, match: Match) -> None:
        """Close the match's round once every match in it is terminal (idempotent)."""
        side, group, rnd = match.bracket_side, match.group_index, match.round_number
        row = cycle.rounds.get((side, group, rnd))
        if row is None or row.status == ROUND_COMPLETED:
            return
        open_matches = count_rows(
            self.session,
            Match.id,
            Match.tournament_id == match.tournament_id,
            Match.bracket_side == side,
            Match.round_number == rnd,
            func.coalesce(Match.group_index, 0) == group,
            Match.status.not_in(TERMINAL_STATUSES),
        )
        if open_matches:
            return

        now = self.now()
        result = self.session.execute(
            update(TournamentRound)
            .where(TournamentRound.id == row.id, TournamentRound.status != ROUND_COMPLETED)
            .values(status=ROUND_COMPLETED, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.refresh(row)
            return
        set_committed_value(row, "status", ROUND_COMPLETED)
        set_committed_value(row, "completed_at", now)

        label = round_label(side, rnd, group)
        cycle.completed_rounds.append(label)
        self.log(match.tournament_id, "round_complete", f"Round {label} complete")

        for nxt in cycle.index.round_matches(side, rnd + 1, group):
            if nxt.status == MATCH_READY:
                self._activate(cycle, nxt)

    def _group_stage_done(self, cycle: _Cycle) -> bool:
        group_matches = [m for m in cycle.index.matches() if m.bracket_side == SIDE_GROUP]
        return bool(group_matches) and all(m.status in TERMINAL_STATUSES for m in group_matches)

    def _check_stage_complete(self, cycle: _Cycle, match: Match) -> None:
        if match.bracket_side == SIDE_ROUND_ROBIN:
            rr = [m for m in cycle.index.matches() if m.bracket_side == SIDE_ROUND_ROBIN]
            if all(m.status in TERMINAL_STATUSES for m in rr):
                table = compute_standings(rr, cycle.participants)
                if table:
                    self._complete_tournament(cycle, table[0].participant_id)
        elif match.bracket_side == SIDE_GROUP and self._group_stage_done(cycle):
            self._seed_knockout(cycle)

    def _seed_knockout(self, cycle: _Cycle) -> None:
        """Fill knockout round one from final group standings (once)."""
        first_round = cycle.index.round_matches(SIDE_KNOCKOUT, 1)
        if not first_round or any(m.status != MATCH_PENDING or m.occupants() for m in first_round):
            return

        tables = group_tables(
            (m for m in cycle.index.matches() if m.bracket_side == SIDE_GROUP), cycle.participants
        )
        for match in first_round:
            for slot in (1, 2):
                source = getattr(match, f"player{slot}_source")
                if not source or getattr(match, f"player{slot}_source_role") != ROLE_GROUP:
                    continue
                group_index, place = parse_group_place_token(source)
                table = tables.get(group_index, [])
                if place <= len(table):
                    self._place(match, slot, table[place - 1].participant_id)

        self.log(
            cycle.tournament.id,
            "group_stage_complete",
            "Group stage complete; knockout seeded from standings",
            metadata={f"group_{g}": [r.participant_id for r in rows] for g, rows in tables.items()},
        )
        self._settle(cycle, [m.bracket_position for m in first_round])

    def _complete_tournament(self, cycle: _Cycle, winner_id: int) -> None:
        """Flip the tournament to completed; only the first caller wins."""
        now = self.now()
        tournament = cycle.tournament
        result = self.session.execute(
            update(Tournament)
            .where(Tournament.id == tournament.id, Tournament.status != TOURNAMENT_COMPLETED)
            .values(status=TOURNAMENT_COMPLETED, winner_participant_id=winner_id, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(tournament)
        if result.rowcount != 1:
            return

        cycle.tournament_complete = True
        cycle.tournament_winner_id = winner_id
        name = self._name(cycle, winner_id)
        self.log(
            tournament.id,
            "tournament_complete",
            f"{tournament.name} won by {name}",
            participant_id=winner_id,
        )
        self._notify(
            cycle,
            winner_id,
            notify.TOURNAMENT_WINNER,
            "Tournament won",
            f"Congratulations, you won {tournament.name}!",
        )
        logger.info("Tournament %s completed; winner participant %s", tournament.id, winner_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _name(self, cycle: _Cycle, participant_id: Optional[int]) -> str:
        p = cycle.participants.get(participant_id) if participant_id is not None else None
        if p is None:
            return "TBD" if participant_id is None else f"participant {participant_id}"
        return p.display_name or p.user_id

    def _notify(
        self,
        cycle: _Cycle,
        participant_id: Optional[int],
        kind: str,
        title: str,
        message: str,
        match_id: Optional[int] = None,
    ) -> None:
        p = cycle.participants.get(participant_id) if participant_id is not None else None
        if p is None:
            return
        cycle.notifications.append(
            NotificationRequest(
                recipient_id=p.user_id,
                tournament_id=cycle.tournament.id,
                type=kind,
                title=title,
                message=message,
                match_id=match_id,
            )
        )
