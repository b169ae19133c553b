"""
Seeding: orders a roster before bracket construction.

Policies:
- ``standard`` / ``seeded``: explicit seed ascending, then skill rating descending,
  then join time (stable for equal keys).
- ``random``: uniform shuffle; pass an ``rng`` (or a tournament ``random_seed``) for
  reproducible draws.
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from bracketeer.config import MAX_PARTICIPANTS, MIN_PARTICIPANTS
from bracketeer.models.participant import Participant
from bracketeer.services.errors import InvalidParticipantCount, UnsupportedSeedingPolicy

POLICY_STANDARD = "standard"
POLICY_SEEDED = "seeded"
POLICY_RANDOM = "random"

SEEDING_POLICIES = (POLICY_STANDARD, POLICY_SEEDED, POLICY_RANDOM)


def validate_participant_count(count: int) -> None:
    if count < MIN_PARTICIPANTS or count > MAX_PARTICIPANTS:
        raise InvalidParticipantCount(count, MIN_PARTICIPANTS, MAX_PARTICIPANTS)


def _standard_key(p: Participant):
    return (
        p.seed is None,
        p.seed if p.seed is not None else 0,
        p.skill_rating is None,
        -(p.skill_rating or 0.0),
        p.joined_at,
        p.id or 0,
    )


def seed_participants(
    participants: Sequence[Participant],
    policy: Optional[str] = POLICY_STANDARD,
    rng: Optional[random.Random] = None,
) -> List[Participant]:
    """Return a new list ordered by ``policy``; index 0 is seed 1."""
    validate_participant_count(len(participants))

    key = (policy or POLICY_STANDARD).strip().lower()
    if key in (POLICY_STANDARD, POLICY_SEEDED):
        return sorted(participants, key=_standard_key)
    if key == POLICY_RANDOM:
        shuffled = list(participants)
        (rng or random.Random()).shuffle(shuffled)
        return shuffled
    raise UnsupportedSeedingPolicy(policy, SEEDING_POLICIES)


def bracket_slot_order(size: int) -> List[int]:
    """Seed numbers in bracket position order for a power-of-two ``size``.

    Consecutive pairs are first-round matchups, and seeds 1 and 2 can only meet
    in the final if chalk holds:
      2 -> [1, 2]
      4 -> [1, 4, 2, 3]
      8 -> [1, 8, 4, 5, 2, 7, 3, 6]
    """
    if size < 2 or size & (size - 1):
        raise ValueError(f"size must be a power of two >= 2, got {size}")
    order = [1, 2]
    while len(order) < size:
        n = len(order) * 2
        expanded: List[int] = []
        for s in order:
            expanded.append(s)
            expanded.append(n + 1 - s)
        order = expanded
    return order
