"""Deadline sweeper: single forfeits, double forfeits with organizer override, reminders."""
from datetime import timedelta

import pytest
from sqlmodel import select

from bracketeer.models.match import FORFEIT_DOUBLE, FORFEIT_PLAYER2, MATCH_ACTIVE, MATCH_COMPLETED, MATCH_PENDING
from bracketeer.models.tournament import TOURNAMENT_COMPLETED, TOURNAMENT_ONGOING
from bracketeer.models.tournament_log import TournamentLog
from bracketeer.services import notification_service as notify
from bracketeer.services.bracket_generator import generate_bracket
from bracketeer.services.errors import InvalidWinner, NotDoubleForfeit, TournamentNotFound
from bracketeer.services.forfeit_sweeper import (
    DOUBLE_FORFEIT_NOTE,
    OUTCOME_DOUBLE_FORFEIT,
    OUTCOME_FORFEIT,
    OUTCOME_SKIPPED,
    PLAYER2_FORFEIT_NOTE,
    send_deadline_reminders,
    sweep_expired,
)
from bracketeer.services.progression_service import ProgressionService
from bracketeer.services.result_submission import submit_result


@pytest.fixture
def eight(session, sink, make_tournament):
    tournament, players = make_tournament(8)
    generate_bracket(session, tournament.id, sink)
    return tournament, players


def test_deadline_in_future_is_left_alone(session, sink, eight, positions):
    tournament, _ = eight
    deadline = positions(tournament.id)["R1M1"].deadline

    assert sweep_expired(session, tournament.id, now=deadline - timedelta(minutes=1), sink=sink) == []
    assert all(m.status == MATCH_ACTIVE for t, m in positions(tournament.id).items() if t.startswith("R1"))


def test_sweep_outcomes_per_submission_state(session, sink, eight, positions):
    tournament, players = eight
    pos = positions(tournament.id)
    r1m1, r1m3 = pos["R1M1"], pos["R1M3"]
    deadline = r1m1.deadline

    # R1M1: only player 1 reported. R1M3: both reported (disagreeing). R1M2/R1M4: silence.
    submit_result(session, tournament.id, r1m1.id, r1m1.player1_id, r1m1.player1_id)
    submit_result(session, tournament.id, r1m3.id, r1m3.player1_id, r1m3.player1_id)
    submit_result(session, tournament.id, r1m3.id, r1m3.player2_id, r1m3.player2_id)

    results = sweep_expired(session, tournament.id, now=deadline + timedelta(hours=1), sink=sink)
    by_position = {r.bracket_position: r for r in results}
    assert set(by_position) == {"R1M1", "R1M2", "R1M3", "R1M4"}

    forfeit = by_position["R1M1"]
    assert forfeit.outcome == OUTCOME_FORFEIT
    assert forfeit.winner_id == players[0].id
    assert forfeit.reason == PLAYER2_FORFEIT_NOTE
    assert forfeit.progression.advanced_to == "R2M1"

    assert by_position["R1M2"].outcome == OUTCOME_DOUBLE_FORFEIT
    assert by_position["R1M2"].reason == DOUBLE_FORFEIT_NOTE
    assert by_position["R1M3"].outcome == OUTCOME_SKIPPED

    pos = positions(tournament.id)
    assert pos["R1M1"].status == MATCH_COMPLETED
    assert pos["R1M1"].forfeit == FORFEIT_PLAYER2
    assert pos["R1M1"].admin_notes == PLAYER2_FORFEIT_NOTE
    assert pos["R2M1"].player1_id == players[0].id

    assert pos["R1M2"].status == MATCH_COMPLETED
    assert pos["R1M2"].winner_id is None
    assert pos["R1M2"].forfeit == FORFEIT_DOUBLE
    assert pos["R2M1"].player2_id is None
    assert pos["R2M1"].status == MATCH_PENDING

    assert pos["R1M3"].status == MATCH_ACTIVE
    forfeited = sorted(r.recipient_id for r in sink.of_type(notify.MATCH_FORFEITED) if r.match_id == pos["R1M2"].id)
    assert forfeited == ["user-4", "user-5"]

    # A second sweep at the same instant finds only the match still awaiting verification
    again = sweep_expired(session, tournament.id, now=deadline + timedelta(hours=1), sink=sink)
    assert [(r.bracket_position, r.outcome) for r in again] == [("R1M3", OUTCOME_SKIPPED)]


def test_double_forfeit_waits_for_organizer_override(session, sink, eight, positions):
    tournament, players = eight
    pos = positions(tournament.id)
    sweep_expired(session, tournament.id, now=pos["R1M1"].deadline + timedelta(seconds=1), sink=sink)

    pos = positions(tournament.id)
    service = ProgressionService(session, sink)
    with pytest.raises(InvalidWinner):
        service.assign_advancing_player(pos["R1M2"].id, players[0].id)

    result = service.assign_advancing_player(pos["R1M2"].id, players[4].id, tournament_id=tournament.id)
    assert result.advanced_to == "R2M1"
    assert result.loser_routed_to is None

    pos = positions(tournament.id)
    assert pos["R1M2"].winner_id == players[4].id
    assert pos["R1M2"].forfeit == FORFEIT_DOUBLE
    assert DOUBLE_FORFEIT_NOTE in pos["R1M2"].admin_notes
    # R1M1 was a double forfeit too, so R2M1 still waits on its first slot
    assert (pos["R2M1"].player1_id, pos["R2M1"].player2_id) == (None, players[4].id)

    service.assign_advancing_player(pos["R1M1"].id, players[7].id)
    pos = positions(tournament.id)
    assert (pos["R2M1"].player1_id, pos["R2M1"].player2_id) == (players[7].id, players[4].id)
    assert pos["R2M1"].status == MATCH_ACTIVE

    overrides = session.exec(select(TournamentLog).where(TournamentLog.action_type == "winner_override")).all()
    assert len(overrides) == 2

    with pytest.raises(NotDoubleForfeit):
        service.assign_advancing_player(pos["R1M1"].id, players[0].id)


def test_double_forfeit_in_final_keeps_tournament_open(session, sink, make_tournament, positions):
    tournament, players = make_tournament(2)
    generate_bracket(session, tournament.id, sink)
    final = positions(tournament.id)["R1M1"]

    results = sweep_expired(session, tournament.id, now=final.deadline + timedelta(hours=3), sink=sink)
    assert [r.outcome for r in results] == [OUTCOME_DOUBLE_FORFEIT]
    session.refresh(tournament)
    assert tournament.status == TOURNAMENT_ONGOING

    result = ProgressionService(session, sink).assign_advancing_player(final.id, players[1].id)
    assert result.tournament_complete
    session.refresh(tournament)
    assert tournament.status == TOURNAMENT_COMPLETED
    assert tournament.winner_participant_id == players[1].id


def test_sweep_unknown_tournament(session):
    with pytest.raises(TournamentNotFound):
        sweep_expired(session, 404)


def test_reminder_then_warning_each_sent_once(session, sink, make_tournament, positions):
    tournament, players = make_tournament(2)
    generate_bracket(session, tournament.id, sink)
    match = positions(tournament.id)["R1M1"]
    deadline = match.deadline

    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(hours=30), sink=sink) == 0

    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(hours=10), sink=sink) == 2
    assert sink.recipients(notify.DEADLINE_REMINDER) == ["user-1", "user-2"]
    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(hours=9), sink=sink) == 0

    submit_result(session, tournament.id, match.id, players[0].id, players[0].id)
    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(hours=1), sink=sink) == 1
    assert sink.recipients(notify.DEADLINE_WARNING) == ["user-2"]
    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(minutes=30), sink=sink) == 0

    match = positions(tournament.id)["R1M1"]
    assert match.reminder_sent and match.warning_sent


def test_warning_window_skips_straight_to_warning(session, sink, make_tournament, positions):
    tournament, _ = make_tournament(2)
    generate_bracket(session, tournament.id, sink)
    deadline = positions(tournament.id)["R1M1"].deadline

    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(hours=1), sink=sink) == 2
    assert sink.of_type(notify.DEADLINE_REMINDER) == []
    assert send_deadline_reminders(session, tournament.id, now=deadline - timedelta(minutes=10), sink=sink) == 0
    assert positions(tournament.id)["R1M1"].reminder_sent
