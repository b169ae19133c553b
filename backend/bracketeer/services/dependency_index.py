"""
In-memory index over one tournament's matches.

Built once per unit of work from a single query; lookups by bracket position never
hit the database again. Missing positions raise DependentMatchNotFound.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from bracketeer.models.match import ROLE_GROUP, ROLE_LOSER, ROLE_WINNER, Match
from bracketeer.services.bracket_keys import BracketKey
from bracketeer.services.errors import DependentMatchNotFound


class DependencyIndex:
    def __init__(self, tournament_id: int, matches: Iterable[Match]):
        self.tournament_id = tournament_id
        self._by_position: Dict[str, Match] = {}
        self._dependents: Dict[str, List[Match]] = defaultdict(list)
        for m in matches:
            self._by_position[m.bracket_position] = m
        for m in self._by_position.values():
            for source in m.depends_on_matches or []:
                self._dependents[source].append(m)

    @classmethod
    def load(cls, session: Session, tournament_id: int) -> "DependencyIndex":
        matches = session.exec(
            select(Match).where(Match.tournament_id == tournament_id).execution_options(populate_existing=True)
        ).all()
        return cls(tournament_id, matches)

    def __contains__(self, token: str) -> bool:
        return token in self._by_position

    def __len__(self) -> int:
        return len(self._by_position)

    def matches(self) -> List[Match]:
        return list(self._by_position.values())

    def find(self, token: Optional[str]) -> Optional[Match]:
        if not token:
            return None
        return self._by_position.get(token)

    def get(self, token: str, source_match_id: Optional[int] = None) -> Match:
        match = self._by_position.get(token)
        if match is None:
            raise DependentMatchNotFound(self.tournament_id, token, source_match_id)
        return match

    def dependents(self, token: str) -> List[Match]:
        """Matches that list ``token`` among their sources."""
        return list(self._dependents.get(token, []))

    def by_key(self, key: BracketKey) -> Match:
        return self.get(key.token)

    def round_matches(self, side: str, round_number: int, group_index: int = 0) -> List[Match]:
        return sorted(
            (
                m
                for m in self._by_position.values()
                if m.bracket_side == side and m.round_number == round_number and (m.group_index or 0) == group_index
            ),
            key=lambda m: m.match_number,
        )

    def validate(self) -> List[str]:
        """
        Return broken references: a feed or source naming a position that does not exist,
        or a source whose own feed (winner or loser) does not point back at the match.
        """
        problems = []
        for m in self._by_position.values():
            for label, target in (
                ("feeds_into_match", m.feeds_into_match),
                ("loser_feeds_into_match", m.loser_feeds_into_match),
            ):
                if target and target not in self._by_position:
                    problems.append(f"{m.bracket_position}.{label} -> {target}")
            for slot in (1, 2):
                source = getattr(m, f"player{slot}_source")
                role = getattr(m, f"player{slot}_source_role")
                if source and role != ROLE_GROUP and source not in self._by_position:
                    problems.append(f"{m.bracket_position}.player{slot}_source -> {source}")
                if source and role == ROLE_LOSER:
                    feeder = self._by_position.get(source)
                    if feeder is not None and feeder.loser_feeds_into_match != m.bracket_position:
                        problems.append(f"{m.bracket_position}.player{slot}_source loser mismatch")
                if source and role == ROLE_WINNER:
                    feeder = self._by_position.get(source)
                    if feeder is not None and feeder.feeds_into_match != m.bracket_position:
                        problems.append(f"{m.bracket_position}.player{slot}_source winner mismatch")
        return problems
