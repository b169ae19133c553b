"""match_state maps every legal row to one variant and rejects contradictory rows."""
from datetime import datetime

import pytest

from bracketeer.models.match import (
    FORFEIT_DOUBLE,
    FORFEIT_PLAYER2,
    MATCH_ACTIVE,
    MATCH_BYE,
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCH_READY,
    Match,
)
from bracketeer.services.errors import IllegalMatchState
from bracketeer.services.match_state import Active, Bye, Completed, DoubleForfeit, Pending, Ready, match_state


def _match(**kwargs):
    defaults = dict(id=1, tournament_id=1, round_number=1, match_number=1, bracket_position="R1M1")
    defaults.update(kwargs)
    return Match(**defaults)


def test_pending_with_partial_slots():
    assert match_state(_match(status=MATCH_PENDING, player1_id=5)) == Pending(5, None)


def test_ready_and_active():
    assert match_state(_match(status=MATCH_READY, player1_id=5, player2_id=6)) == Ready(5, 6)
    deadline = datetime(2026, 5, 1, 12, 0)
    assert match_state(_match(status=MATCH_ACTIVE, player1_id=5, player2_id=6, deadline=deadline)) == Active(
        5, 6, deadline
    )


def test_completed_carries_loser_and_forfeit():
    state = match_state(
        _match(status=MATCH_COMPLETED, player1_id=5, player2_id=6, winner_id=5, forfeit=FORFEIT_PLAYER2)
    )
    assert state == Completed(winner_id=5, loser_id=6, forfeit=FORFEIT_PLAYER2)


def test_bye_with_and_without_winner():
    assert match_state(_match(status=MATCH_BYE, player1_id=5, winner_id=5)) == Bye(5)
    assert match_state(_match(status=MATCH_BYE)) == Bye(None)


def test_double_forfeit():
    state = match_state(_match(status=MATCH_COMPLETED, player1_id=5, player2_id=6, forfeit=FORFEIT_DOUBLE))
    assert isinstance(state, DoubleForfeit)
    assert (state.player1_id, state.player2_id) == (5, 6)


@pytest.mark.parametrize(
    "fields",
    [
        dict(status=MATCH_READY, player1_id=5),
        dict(status=MATCH_ACTIVE, player2_id=6),
        dict(status=MATCH_COMPLETED, player1_id=5, player2_id=6),
        dict(status=MATCH_COMPLETED, player1_id=5, player2_id=6, winner_id=9),
        dict(status=MATCH_BYE, player1_id=5, winner_id=9),
        dict(status="abandoned", player1_id=5, player2_id=6),
    ],
)
def test_contradictory_rows_raise(fields):
    with pytest.raises(IllegalMatchState) as exc:
        match_state(_match(**fields))
    assert exc.value.to_dict()["match_id"] == 1
