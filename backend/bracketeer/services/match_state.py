"""
Tagged view over a Match row.

``match_state(match)`` collapses the status column, slots and outcome fields into one
variant so callers branch on a single value instead of re-deriving combinations.
A row whose fields contradict each other raises IllegalMatchState.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from bracketeer.models.match import (
    FORFEIT_DOUBLE,
    MATCH_ACTIVE,
    MATCH_BYE,
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCH_READY,
    Match,
)
from bracketeer.services.errors import IllegalMatchState


@dataclass(frozen=True)
class Pending:
    player1_id: Optional[int]
    player2_id: Optional[int]


@dataclass(frozen=True)
class Ready:
    player1_id: int
    player2_id: int


@dataclass(frozen=True)
class Active:
    player1_id: int
    player2_id: int
    deadline: Optional[datetime]


@dataclass(frozen=True)
class Completed:
    winner_id: int
    loser_id: Optional[int]
    forfeit: Optional[str] = None


@dataclass(frozen=True)
class Bye:
    winner_id: Optional[int]  # None when both slots were dead


@dataclass(frozen=True)
class DoubleForfeit:
    player1_id: Optional[int]
    player2_id: Optional[int]


MatchState = Union[Pending, Ready, Active, Completed, Bye, DoubleForfeit]


def match_state(match: Match) -> MatchState:
    status = match.status
    p1, p2 = match.player1_id, match.player2_id

    if status == MATCH_PENDING:
        return Pending(p1, p2)

    if status in (MATCH_READY, MATCH_ACTIVE):
        if p1 is None or p2 is None:
            raise IllegalMatchState(match.id, f"{status} match with an empty slot")
        if status == MATCH_READY:
            return Ready(p1, p2)
        return Active(p1, p2, match.deadline)

    if status == MATCH_BYE:
        if match.winner_id is not None and match.winner_id not in (p1, p2):
            raise IllegalMatchState(match.id, "bye winner is not an occupant")
        return Bye(match.winner_id)

    if status == MATCH_COMPLETED:
        if match.winner_id is None:
            if match.forfeit == FORFEIT_DOUBLE:
                return DoubleForfeit(p1, p2)
            raise IllegalMatchState(match.id, "completed match without a winner")
        if match.winner_id not in (p1, p2):
            raise IllegalMatchState(match.id, "winner is not an occupant")
        return Completed(match.winner_id, match.opponent_of(match.winner_id), match.forfeit)

    raise IllegalMatchState(match.id, f"unknown status {status!r}")
