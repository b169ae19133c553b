"""
Round-robin / group standings.

3 points per win. Ordered by points, wins, fewer losses, then seed (unseeded last),
then participant id so the table is total and stable.
A double forfeit counts as a played loss for both sides.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from bracketeer.models.match import FORFEIT_DOUBLE, MATCH_COMPLETED, Match
from bracketeer.models.participant import Participant

POINTS_PER_WIN = 3


@dataclass
class StandingRow:
    participant_id: int
    display_name: str = ""
    seed: Optional[int] = None
    played: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    group_index: int = 0


def _sort_key(row: StandingRow):
    return (-row.points, -row.wins, row.losses, row.seed is None, row.seed or 0, row.participant_id)


def compute_standings(
    matches: Iterable[Match],
    participants: Dict[int, Participant],
    group_index: int = 0,
) -> List[StandingRow]:
    """
    Build the table for the occupants of ``matches``.

    ``participants`` maps Participant.id to the row (for names and seeds); ids missing
    from it still get a row.
    """
    rows: Dict[int, StandingRow] = {}

    def row_for(pid: int) -> StandingRow:
        if pid not in rows:
            p = participants.get(pid)
            rows[pid] = StandingRow(
                participant_id=pid,
                display_name=(p.display_name or p.user_id) if p else "",
                seed=p.seed if p else None,
                group_index=group_index,
            )
        return rows[pid]

    for m in matches:
        for pid in m.occupants():
            row_for(pid)
        if m.status != MATCH_COMPLETED:
            continue
        if m.winner_id is None:
            if m.forfeit == FORFEIT_DOUBLE:
                for pid in m.occupants():
                    r = row_for(pid)
                    r.played += 1
                    r.losses += 1
            continue
        winner = row_for(m.winner_id)
        winner.played += 1
        winner.wins += 1
        winner.points += POINTS_PER_WIN
        loser_id = m.opponent_of(m.winner_id)
        if loser_id is not None:
            loser = row_for(loser_id)
            loser.played += 1
            loser.losses += 1

    return sorted(rows.values(), key=_sort_key)


def group_tables(matches: Iterable[Match], participants: Dict[int, Participant]) -> Dict[int, List[StandingRow]]:
    """Standings per group index for group-stage matches (group_index >= 1)."""
    by_group: Dict[int, List[Match]] = {}
    for m in matches:
        if m.group_index:
            by_group.setdefault(m.group_index, []).append(m)
    return {g: compute_standings(ms, participants, g) for g, ms in sorted(by_group.items())}
