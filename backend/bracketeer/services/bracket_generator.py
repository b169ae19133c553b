"""
Bracket Generator

Turns an ordered roster into the complete initial match set for a format:
- single_elimination: power-of-two tree, byes for the top seeds
- double_elimination: winners tree + losers bracket + grand final
- round_robin: circle-method schedule (nobody plays twice in a round)
- group_stage: round robin per group + knockout tree filled from group standings
- custom: "mixed" delegates to group_stage, "single_elimination" (default) to single_elimination

``build_matches`` is pure (returns unsaved Match rows with dependency metadata).
``generate_bracket`` is the persisted entry point: seed, build, batch insert, settle
byes, activate round one and flip the tournament to ``ongoing`` in one transaction.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from bracketeer.models.match import (
    MATCH_BYE,
    ROLE_GROUP,
    ROLE_LOSER,
    ROLE_WINNER,
    SIDE_GRAND_FINAL,
    SIDE_GROUP,
    SIDE_KNOCKOUT,
    SIDE_LOSERS,
    SIDE_MAIN,
    SIDE_ROUND_ROBIN,
    SIDE_WINNERS,
    TYPE_FINAL,
    TYPE_GRAND_FINAL,
    TYPE_GROUP,
    TYPE_KNOCKOUT,
    TYPE_LOSERS,
    TYPE_WINNERS,
    Match,
)
from bracketeer.models.match_result import MatchResultSubmission
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import (
    FORMAT_CUSTOM,
    FORMAT_DOUBLE_ELIMINATION,
    FORMAT_GROUP_STAGE,
    FORMAT_ROUND_ROBIN,
    FORMAT_SINGLE_ELIMINATION,
    SUPPORTED_FORMATS,
    TOURNAMENT_ONGOING,
    Tournament,
)
from bracketeer.models.tournament_round import TournamentRound
from bracketeer.services.bracket_keys import BracketKey, group_place_token
from bracketeer.services.errors import (
    BracketAlreadyGenerated,
    InvalidGroupConfiguration,
    TournamentNotFound,
    UnsupportedFormat,
)
from bracketeer.services.notification_service import NotificationSink
from bracketeer.services.progression_service import ProgressionService
from bracketeer.services.seeding import bracket_slot_order, seed_participants, validate_participant_count
from bracketeer.utils.retry import run_with_retry
from bracketeer.utils.sql import count_rows

logger = logging.getLogger(__name__)

CUSTOM_MIXED = "mixed"
CUSTOM_RULES = (CUSTOM_MIXED, FORMAT_SINGLE_ELIMINATION)


@dataclass
class BracketConfig:
    group_count: int = 4
    knockout_slots_per_group: int = 2
    custom_format: Optional[str] = None

    @classmethod
    def from_tournament(cls, tournament: Tournament) -> "BracketConfig":
        return cls(
            group_count=tournament.group_count,
            knockout_slots_per_group=tournament.knockout_slots_per_group,
            custom_format=tournament.custom_format,
        )


@dataclass
class GenerationResult:
    tournament_id: int
    format: str
    match_count: int
    bye_count: int
    rounds: Dict[str, int] = field(default_factory=dict)
    activated_match_ids: List[int] = field(default_factory=list)
    seeded_participant_ids: List[int] = field(default_factory=list)


# =============================================================================
# Sizing helpers
# =============================================================================


def next_power_of_two(n: int) -> int:
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    return 1 << (n - 1).bit_length()


def elimination_rounds(n: int) -> int:
    """log2 of the bracket size for n entrants (ceil(log2 n))."""
    return next_power_of_two(n).bit_length() - 1


def losers_round_sizes(winners_rounds: int) -> List[int]:
    """
    Match count per losers-bracket round for a winners bracket of ``winners_rounds``.

    LR1 = 2^(k-2); each even round repeats the preceding odd round (survivors meet the
    next wave of winners-bracket drop-downs); each odd round after the first halves the
    preceding even round. 2k-2 rounds in total.
      k=2 -> [1, 1]
      k=3 -> [2, 2, 1, 1]
      k=4 -> [4, 4, 2, 2, 1, 1]
    """
    if winners_rounds < 2:
        return []
    sizes = [2 ** (winners_rounds - 2)]
    for rnd in range(2, 2 * winners_rounds - 1):
        sizes.append(sizes[-1] if rnd % 2 == 0 else sizes[-1] // 2)
    return sizes


def circle_pairings(n: int) -> List[Tuple[int, int, int, int]]:
    """
    Round-robin pairings by the circle method.

    Returns (round_number, match_number, idx_a, idx_b) with 0-based roster indices.
    Even n: n-1 rounds of n/2 matches. Odd n: n rounds, one entrant sits out per round.
    """
    if n < 2:
        return []
    n2 = n + 1 if n % 2 == 1 else n
    half = n2 // 2
    bye_idx = n if n % 2 == 1 else -1
    positions = list(range(n2))

    result: List[Tuple[int, int, int, int]] = []
    for round_num in range(1, n2):
        seq = 0
        for i in range(half):
            a, b = positions[i], positions[n2 - 1 - i]
            if a == bye_idx or b == bye_idx:
                continue
            seq += 1
            result.append((round_num, seq, min(a, b), max(a, b)))
        # Keep position 0 fixed, rotate the rest clockwise
        positions = [positions[0]] + [positions[-1]] + positions[1:-1]
    return result


def partition_groups(participant_ids: Sequence[int], group_count: int) -> List[List[int]]:
    """Contiguous slices whose sizes differ by at most one (earlier groups get the extra)."""
    base, extra = divmod(len(participant_ids), group_count)
    groups: List[List[int]] = []
    start = 0
    for i in range(group_count):
        size = base + (1 if i < extra else 0)
        groups.append(list(participant_ids[start : start + size]))
        start += size
    return groups


# =============================================================================
# Match construction
# =============================================================================


def _new_match(tournament_id: int, key: BracketKey, match_type: str) -> Match:
    return Match(
        tournament_id=tournament_id,
        round_number=key.round,
        match_number=key.match,
        bracket_side=key.side,
        group_index=key.group,
        match_type=match_type,
        bracket_position=key.token,
        depends_on_matches=[],
    )


def _wire(source: Match, target: Match, slot: int, role: str = ROLE_WINNER) -> None:
    """Record that ``role`` of ``source`` fills ``slot`` of ``target``."""
    if role == ROLE_LOSER:
        source.loser_feeds_into_match = target.bracket_position
        source.loser_feeds_into_slot = slot
    else:
        source.feeds_into_match = target.bracket_position
        source.feeds_into_slot = slot
    setattr(target, f"player{slot}_source", source.bracket_position)
    setattr(target, f"player{slot}_source_role", role)


def _finalize_dependencies(matches: Sequence[Match]) -> None:
    for m in matches:
        m.depends_on_matches = [
            source
            for source, role in (
                (m.player1_source, m.player1_source_role),
                (m.player2_source, m.player2_source_role),
            )
            if source and role in (ROLE_WINNER, ROLE_LOSER)
        ]


def _build_tree(
    tournament_id: int,
    side: str,
    rounds: int,
    inner_type: str,
    final_type: str,
) -> List[List[Match]]:
    """Empty elimination tree; match m of round r feeds match ceil(m/2) of round r+1."""
    tree: List[List[Match]] = []
    for rnd in range(1, rounds + 1):
        count = 2 ** (rounds - rnd)
        match_type = final_type if rnd == rounds else inner_type
        tree.append([_new_match(tournament_id, BracketKey(side, rnd, m), match_type) for m in range(1, count + 1)])

    for rnd in range(1, rounds):
        for m, match in enumerate(tree[rnd - 1], start=1):
            _wire(match, tree[rnd][math.ceil(m / 2) - 1], 1 if m % 2 == 1 else 2)
    return tree


def _seed_first_round(first_round: List[Match], participant_ids: Sequence[int]) -> None:
    n = len(participant_ids)
    size = len(first_round) * 2
    slots = [participant_ids[s - 1] if s <= n else None for s in bracket_slot_order(size)]
    for i, match in enumerate(first_round):
        match.player1_id = slots[2 * i]
        match.player2_id = slots[2 * i + 1]


def build_single_elimination(tournament_id: int, participant_ids: Sequence[int]) -> List[Match]:
    rounds = elimination_rounds(len(participant_ids))
    tree = _build_tree(tournament_id, SIDE_MAIN, rounds, TYPE_KNOCKOUT, TYPE_FINAL)
    _seed_first_round(tree[0], participant_ids)
    matches = [m for rnd in tree for m in rnd]
    _finalize_dependencies(matches)
    return matches


def build_double_elimination(tournament_id: int, participant_ids: Sequence[int]) -> List[Match]:
    k = elimination_rounds(len(participant_ids))
    winners = _build_tree(tournament_id, SIDE_WINNERS, k, TYPE_WINNERS, TYPE_WINNERS)
    _seed_first_round(winners[0], participant_ids)

    grand_final = _new_match(tournament_id, BracketKey(SIDE_GRAND_FINAL, 1, 1), TYPE_GRAND_FINAL)
    _wire(winners[-1][0], grand_final, 1)

    losers: List[List[Match]] = []
    if k == 1:
        # Two entrants: the loser of the only winners match gets the second life in the final
        _wire(winners[0][0], grand_final, 2, ROLE_LOSER)
    else:
        for rnd, count in enumerate(losers_round_sizes(k), start=1):
            losers.append(
                [_new_match(tournament_id, BracketKey(SIDE_LOSERS, rnd, m), TYPE_LOSERS) for m in range(1, count + 1)]
            )

        # WR1 losers pair off in LR1
        for m, match in enumerate(winners[0], start=1):
            _wire(match, losers[0][math.ceil(m / 2) - 1], 1 if m % 2 == 1 else 2, ROLE_LOSER)

        # WR r losers drop into LR 2r-2, slot 2; order flips on even winners rounds
        for rnd in range(2, k + 1):
            source_round = winners[rnd - 1]
            target_round = losers[2 * rnd - 3]
            count = len(source_round)
            for m, match in enumerate(source_round, start=1):
                idx = count - m if rnd % 2 == 0 else m - 1
                _wire(match, target_round[idx], 2, ROLE_LOSER)

        last = len(losers)
        for rnd in range(1, last + 1):
            for m, match in enumerate(losers[rnd - 1], start=1):
                if rnd == last:
                    _wire(match, grand_final, 2)
                elif rnd % 2 == 1:
                    _wire(match, losers[rnd][m - 1], 1)
                else:
                    _wire(match, losers[rnd][math.ceil(m / 2) - 1], 1 if m % 2 == 1 else 2)

    matches = [m for rnd in winners for m in rnd] + [m for rnd in losers for m in rnd] + [grand_final]
    _finalize_dependencies(matches)
    return matches


def build_round_robin(
    tournament_id: int,
    participant_ids: Sequence[int],
    side: str = SIDE_ROUND_ROBIN,
    group_index: int = 0,
) -> List[Match]:
    matches = []
    for rnd, seq, a, b in circle_pairings(len(participant_ids)):
        match = _new_match(tournament_id, BracketKey(side, rnd, seq, group_index), TYPE_GROUP)
        match.player1_id = participant_ids[a]
        match.player2_id = participant_ids[b]
        matches.append(match)
    return matches


def build_group_stage(tournament_id: int, participant_ids: Sequence[int], config: BracketConfig) -> List[Match]:
    group_count = config.group_count
    per_group = config.knockout_slots_per_group
    n = len(participant_ids)

    if group_count < 1 or per_group < 1:
        raise InvalidGroupConfiguration(
            "group_count and knockout_slots_per_group must be >= 1",
            group_count=group_count,
            knockout_slots_per_group=per_group,
        )
    if n < 2 * group_count:
        raise InvalidGroupConfiguration(
            f"{n} participants cannot fill {group_count} groups of at least 2",
            participant_count=n,
            group_count=group_count,
        )
    smallest_group = n // group_count
    if per_group > smallest_group:
        raise InvalidGroupConfiguration(
            f"knockout_slots_per_group={per_group} exceeds the smallest group size {smallest_group}",
            knockout_slots_per_group=per_group,
            smallest_group=smallest_group,
        )
    qualifiers = group_count * per_group
    if qualifiers < 2:
        raise InvalidGroupConfiguration(
            "knockout stage needs at least 2 qualifiers",
            group_count=group_count,
            knockout_slots_per_group=per_group,
        )

    matches: List[Match] = []
    for group_index, members in enumerate(partition_groups(participant_ids, group_count), start=1):
        matches.extend(build_round_robin(tournament_id, members, SIDE_GROUP, group_index))

    # Knockout seeds: all group winners first (A, B, ...), then runners-up, ...
    rounds = elimination_rounds(qualifiers)
    tree = _build_tree(tournament_id, SIDE_KNOCKOUT, rounds, TYPE_KNOCKOUT, TYPE_FINAL)
    size = 2**rounds
    slot_seeds = bracket_slot_order(size)
    for i, match in enumerate(tree[0]):
        for slot, seed in ((1, slot_seeds[2 * i]), (2, slot_seeds[2 * i + 1])):
            if seed > qualifiers:
                continue
            place, group_offset = divmod(seed - 1, group_count)
            setattr(match, f"player{slot}_source", group_place_token(group_offset + 1, place + 1))
            setattr(match, f"player{slot}_source_role", ROLE_GROUP)

    knockout = [m for rnd in tree for m in rnd]
    _finalize_dependencies(knockout)
    return matches + knockout


def build_matches(
    tournament_id: int,
    participant_ids: Sequence[int],
    format_token: str,
    config: Optional[BracketConfig] = None,
) -> List[Match]:
    """Build the full initial match set for an already-seeded roster."""
    validate_participant_count(len(participant_ids))
    config = config or BracketConfig()

    if format_token == FORMAT_SINGLE_ELIMINATION:
        return build_single_elimination(tournament_id, participant_ids)
    if format_token == FORMAT_DOUBLE_ELIMINATION:
        return build_double_elimination(tournament_id, participant_ids)
    if format_token == FORMAT_ROUND_ROBIN:
        return build_round_robin(tournament_id, participant_ids)
    if format_token == FORMAT_GROUP_STAGE:
        return build_group_stage(tournament_id, participant_ids, config)
    if format_token == FORMAT_CUSTOM:
        rule = (config.custom_format or FORMAT_SINGLE_ELIMINATION).strip().lower()
        if rule == CUSTOM_MIXED:
            return build_group_stage(tournament_id, participant_ids, config)
        if rule == FORMAT_SINGLE_ELIMINATION:
            return build_single_elimination(tournament_id, participant_ids)
        raise UnsupportedFormat(f"custom:{config.custom_format}", CUSTOM_RULES)
    raise UnsupportedFormat(format_token, SUPPORTED_FORMATS)


# =============================================================================
# Persisted generation
# =============================================================================


def _discard_bracket(session: Session, tournament_id: int) -> None:
    matches = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
    match_ids = [m.id for m in matches]
    if match_ids:
        submissions = session.exec(
            select(MatchResultSubmission).where(MatchResultSubmission.match_id.in_(match_ids))
        ).all()
        for submission in submissions:
            session.delete(submission)
    for match in matches:
        session.delete(match)
    for round_row in session.exec(select(TournamentRound).where(TournamentRound.tournament_id == tournament_id)).all():
        session.delete(round_row)


def _round_rows(tournament_id: int, matches: Sequence[Match]) -> List[TournamentRound]:
    keys = sorted({(m.bracket_side, m.group_index, m.round_number) for m in matches})
    return [
        TournamentRound(tournament_id=tournament_id, bracket_side=side, group_index=group, round_number=rnd)
        for side, group, rnd in keys
    ]


def generate_bracket(
    session: Session,
    tournament_id: int,
    sink: Optional[NotificationSink] = None,
    regenerate: bool = False,
    rng: Optional[random.Random] = None,
) -> GenerationResult:
    """
    Generate and persist the bracket for a tournament.

    Raises:
        TournamentNotFound, BracketAlreadyGenerated, InvalidParticipantCount,
        UnsupportedFormat, UnsupportedSeedingPolicy, InvalidGroupConfiguration
    """
    progression = ProgressionService(session, sink)

    def unit_of_work() -> GenerationResult:
        tournament = session.get(Tournament, tournament_id)
        if not tournament:
            raise TournamentNotFound(tournament_id)
        if tournament.format not in SUPPORTED_FORMATS:
            raise UnsupportedFormat(tournament.format, SUPPORTED_FORMATS)

        existing = count_rows(session, Match.id, Match.tournament_id == tournament_id)
        if existing and not regenerate:
            raise BracketAlreadyGenerated(tournament_id, existing)

        roster = session.exec(
            select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
        ).all()
        draw_rng = rng or (random.Random(tournament.random_seed) if tournament.random_seed is not None else None)
        seeded = seed_participants(roster, tournament.seeding_policy, draw_rng)
        seeded_ids = [p.id for p in seeded]

        matches = build_matches(tournament_id, seeded_ids, tournament.format, BracketConfig.from_tournament(tournament))

        if existing:
            logger.info("Regenerating bracket for tournament %s (discarding %s matches)", tournament_id, existing)
            _discard_bracket(session, tournament_id)
            session.flush()

        session.add_all(matches)
        session.add_all(_round_rows(tournament_id, matches))
        now = progression.now()
        tournament.status = TOURNAMENT_ONGOING
        tournament.bracket_generated_at = now
        tournament.completed_at = None
        tournament.winner_participant_id = None
        session.add(tournament)
        session.flush()

        outcome = progression.settle_new_bracket(tournament, matches)

        rounds: Dict[str, int] = {}
        for m in matches:
            rounds[m.bracket_side] = max(rounds.get(m.bracket_side, 0), m.round_number)

        progression.log(
            tournament_id,
            "bracket_generated",
            f"{tournament.format} bracket generated for {len(seeded_ids)} participants",
            metadata={"match_count": len(matches), "regenerated": bool(existing)},
        )
        session.commit()

        return GenerationResult(
            tournament_id=tournament_id,
            format=tournament.format,
            match_count=len(matches),
            bye_count=sum(1 for m in matches if m.status == MATCH_BYE),
            rounds=rounds,
            activated_match_ids=outcome.activated_match_ids,
            seeded_participant_ids=seeded_ids,
        )

    try:
        result = run_with_retry(unit_of_work, session)
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Generated %s matches (%s byes) for tournament %s", result.match_count, result.bye_count, tournament_id
    )
    progression.dispatch_notifications()
    return result
