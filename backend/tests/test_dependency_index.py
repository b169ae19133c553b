"""Dependency index lookups and whole-bracket consistency, plus bracket-key tokens."""
import pytest

from bracketeer.models.match import SIDE_GRAND_FINAL, SIDE_GROUP, SIDE_KNOCKOUT, SIDE_LOSERS, SIDE_MAIN, SIDE_WINNERS
from bracketeer.models.tournament import (
    FORMAT_DOUBLE_ELIMINATION,
    FORMAT_GROUP_STAGE,
    FORMAT_ROUND_ROBIN,
    FORMAT_SINGLE_ELIMINATION,
)
from bracketeer.services.bracket_generator import BracketConfig, build_matches
from bracketeer.services.bracket_keys import (
    BracketKey,
    group_index_from_letter,
    group_letter,
    group_place_token,
    parse_group_place_token,
    parse_token,
)
from bracketeer.services.dependency_index import DependencyIndex
from bracketeer.services.errors import DependentMatchNotFound


def _index(n, fmt, config=None):
    return DependencyIndex(7, build_matches(7, list(range(1, n + 1)), fmt, config))


@pytest.mark.parametrize("n", range(2, 129))
def test_single_elimination_index_is_consistent(n):
    index = _index(n, FORMAT_SINGLE_ELIMINATION)
    assert index.validate() == []
    for m in index.matches():
        for source in m.depends_on_matches:
            assert index.get(source).feeds_into_match == m.bracket_position
        if m.feeds_into_match:
            assert [t.bracket_position for t in index.dependents(m.bracket_position)] == [m.feeds_into_match]
        else:
            assert index.dependents(m.bracket_position) == []


@pytest.mark.parametrize("n", [2, 3, 8, 11, 32, 57, 128])
def test_double_elimination_index_is_consistent(n):
    index = _index(n, FORMAT_DOUBLE_ELIMINATION)
    assert index.validate() == []
    for m in index.matches():
        for source in m.depends_on_matches:
            feeder = index.get(source)
            assert m.bracket_position in (feeder.feeds_into_match, feeder.loser_feeds_into_match)


def test_group_stage_and_round_robin_indexes_validate():
    assert _index(12, FORMAT_GROUP_STAGE, BracketConfig(4, 2)).validate() == []
    assert _index(9, FORMAT_ROUND_ROBIN).validate() == []


def test_get_unknown_position_raises():
    index = _index(4, FORMAT_SINGLE_ELIMINATION)
    with pytest.raises(DependentMatchNotFound) as exc:
        index.get("R9M9", source_match_id=3)
    detail = exc.value.to_dict()
    assert detail["bracket_position"] == "R9M9"
    assert detail["tournament_id"] == 7
    assert detail["source_match_id"] == 3
    assert index.find("R9M9") is None
    assert index.find(None) is None


def test_dependents_and_round_lookup():
    index = _index(8, FORMAT_SINGLE_ELIMINATION)
    assert [m.bracket_position for m in index.dependents("R1M3")] == ["R2M2"]
    assert [m.match_number for m in index.round_matches(SIDE_MAIN, 1)] == [1, 2, 3, 4]
    assert index.by_key(BracketKey(SIDE_MAIN, 3, 1)).feeds_into_match is None
    assert "R3M1" in index and len(index) == 7


def test_validate_reports_broken_feed():
    matches = build_matches(7, list(range(1, 5)), FORMAT_SINGLE_ELIMINATION)
    matches[0].feeds_into_match = "R7M1"
    problems = DependencyIndex(7, matches).validate()
    assert sorted(problems) == ["R1M1.feeds_into_match -> R7M1", "R2M1.player1_source winner mismatch"]


def test_validate_reports_winner_feed_not_pointing_back():
    matches = build_matches(7, list(range(1, 5)), FORMAT_SINGLE_ELIMINATION)
    pos = {m.bracket_position: m for m in matches}
    pos["R1M2"].feeds_into_match = "R1M1"
    assert DependencyIndex(7, matches).validate() == ["R2M1.player2_source winner mismatch"]


@pytest.mark.parametrize(
    "key,token",
    [
        (BracketKey(SIDE_MAIN, 2, 3), "R2M3"),
        (BracketKey(SIDE_WINNERS, 1, 2), "WR1M2"),
        (BracketKey(SIDE_LOSERS, 3, 1), "LR3M1"),
        (BracketKey(SIDE_GRAND_FINAL, 1, 1), "GF"),
        (BracketKey(SIDE_KNOCKOUT, 1, 1), "KR1M1"),
        (BracketKey(SIDE_GROUP, 2, 1, 1), "GAR2M1"),
        (BracketKey(SIDE_GROUP, 1, 4, 28), "GABR1M4"),
    ],
)
def test_bracket_key_tokens(key, token):
    assert key.token == token
    assert str(key) == token
    assert parse_token(token) == key


def test_parse_token_rejects_garbage():
    with pytest.raises(ValueError):
        parse_token("round-two")


def test_group_letters_and_place_tokens():
    assert [group_letter(i) for i in (1, 2, 26, 27)] == ["A", "B", "Z", "AA"]
    assert group_index_from_letter("AA") == 27
    assert group_place_token(2, 1) == "GB#1"
    assert parse_group_place_token("GC#2") == (3, 2)
    with pytest.raises(ValueError):
        group_letter(0)
