"""Seeding policies, roster bounds and the bracket fold order."""
import random
from datetime import datetime, timedelta

import pytest

from bracketeer.models.participant import Participant
from bracketeer.services.errors import InvalidParticipantCount, UnsupportedSeedingPolicy
from bracketeer.services.seeding import (
    POLICY_RANDOM,
    POLICY_STANDARD,
    bracket_slot_order,
    seed_participants,
    validate_participant_count,
)

BASE = datetime(2026, 3, 1, 12, 0, 0)


def _roster(specs):
    """specs: list of (id, seed, rating, minutes_after_base)"""
    return [
        Participant(
            id=pid,
            tournament_id=1,
            user_id=f"u{pid}",
            seed=seed,
            skill_rating=rating,
            joined_at=BASE + timedelta(minutes=minutes),
        )
        for pid, seed, rating, minutes in specs
    ]


def test_standard_orders_by_join_time_without_ratings():
    roster = _roster([(1, None, None, 30), (2, None, None, 10), (3, None, None, 20)])
    assert [p.id for p in seed_participants(roster, POLICY_STANDARD)] == [2, 3, 1]


def test_standard_prefers_skill_rating_descending():
    roster = _roster([(1, None, 1200.0, 0), (2, None, 1800.0, 5), (3, None, None, 1), (4, None, 1500.0, 2)])
    assert [p.id for p in seed_participants(roster, POLICY_STANDARD)] == [2, 4, 1, 3]


def test_explicit_seed_wins_over_rating():
    roster = _roster([(1, None, 2000.0, 0), (2, 2, 100.0, 1), (3, 1, None, 2)])
    assert [p.id for p in seed_participants(roster, "seeded")] == [3, 2, 1]


def test_standard_does_not_mutate_input():
    roster = _roster([(1, None, None, 30), (2, None, None, 10)])
    seed_participants(roster)
    assert [p.id for p in roster] == [1, 2]


def test_random_is_a_permutation_and_reproducible_with_rng():
    roster = _roster([(i, None, None, i) for i in range(1, 17)])
    first = seed_participants(roster, POLICY_RANDOM, random.Random(42))
    second = seed_participants(roster, POLICY_RANDOM, random.Random(42))
    assert [p.id for p in first] == [p.id for p in second]
    assert sorted(p.id for p in first) == list(range(1, 17))


def test_unknown_policy_rejected():
    roster = _roster([(1, None, None, 0), (2, None, None, 1)])
    with pytest.raises(UnsupportedSeedingPolicy) as exc:
        seed_participants(roster, "by_vibes")
    assert exc.value.to_dict()["code"] == "UNSUPPORTED_SEEDING_POLICY"


@pytest.mark.parametrize("count", [0, 1, 129, 500])
def test_participant_count_out_of_bounds(count):
    with pytest.raises(InvalidParticipantCount) as exc:
        validate_participant_count(count)
    assert exc.value.count == count
    assert exc.value.status_code == 422


@pytest.mark.parametrize("count", [2, 3, 64, 128])
def test_participant_count_in_bounds(count):
    validate_participant_count(count)


def test_single_participant_cannot_be_seeded():
    with pytest.raises(InvalidParticipantCount):
        seed_participants(_roster([(1, None, None, 0)]))


def test_bracket_slot_order_small_sizes():
    assert bracket_slot_order(2) == [1, 2]
    assert bracket_slot_order(4) == [1, 4, 2, 3]
    assert bracket_slot_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]


@pytest.mark.parametrize("size", [2, 4, 8, 16, 32, 64, 128])
def test_bracket_slot_order_pairs_sum_to_size_plus_one(size):
    order = bracket_slot_order(size)
    assert sorted(order) == list(range(1, size + 1))
    for i in range(0, size, 2):
        assert order[i] + order[i + 1] == size + 1


@pytest.mark.parametrize("size", [0, 1, 3, 6, 12])
def test_bracket_slot_order_rejects_non_power_of_two(size):
    with pytest.raises(ValueError):
        bracket_slot_order(size)
