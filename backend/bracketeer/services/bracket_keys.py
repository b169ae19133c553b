"""
Typed bracket-position identifiers.

Matches are addressed internally by ``BracketKey``; the human-readable token
(``R2M3``, ``WR1M2``, ``LR3M1``, ``GF``, ``KR1M1``, ``GAR2M1``) is kept for display,
logging and persistence.
"""

import re
import string
from typing import NamedTuple

from bracketeer.models.match import (
    SIDE_GRAND_FINAL,
    SIDE_GROUP,
    SIDE_KNOCKOUT,
    SIDE_LOSERS,
    SIDE_MAIN,
    SIDE_ROUND_ROBIN,
    SIDE_WINNERS,
    Match,
)

_SIDE_PREFIX = {
    SIDE_MAIN: "",
    SIDE_ROUND_ROBIN: "",
    SIDE_WINNERS: "W",
    SIDE_LOSERS: "L",
    SIDE_KNOCKOUT: "K",
}
_PREFIX_SIDE = {"W": SIDE_WINNERS, "L": SIDE_LOSERS, "K": SIDE_KNOCKOUT}

_TOKEN_RE = re.compile(r"^(?:(?P<side>[WLK])|G(?P<group>[A-Z]+))?R(?P<round>\d+)M(?P<match>\d+)$")
GRAND_FINAL_TOKEN = "GF"


def group_letter(group_index: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    if group_index < 1:
        raise ValueError(f"group_index must be >= 1, got {group_index}")
    letters = ""
    n = group_index
    while n:
        n, rem = divmod(n - 1, 26)
        letters = string.ascii_uppercase[rem] + letters
    return letters


def group_index_from_letter(letters: str) -> int:
    index = 0
    for ch in letters:
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index


class BracketKey(NamedTuple):
    side: str
    round: int
    match: int
    group: int = 0

    @property
    def token(self) -> str:
        if self.side == SIDE_GRAND_FINAL:
            return GRAND_FINAL_TOKEN
        if self.side == SIDE_GROUP:
            return f"G{group_letter(self.group)}R{self.round}M{self.match}"
        return f"{_SIDE_PREFIX[self.side]}R{self.round}M{self.match}"

    @classmethod
    def of(cls, match: Match) -> "BracketKey":
        return cls(match.bracket_side, match.round_number, match.match_number, match.group_index or 0)

    def __str__(self) -> str:
        return self.token


def parse_token(token: str, default_side: str = SIDE_MAIN) -> BracketKey:
    """
    Parse a bracket-position token back into a BracketKey.

    Unprefixed ``R{r}M{m}`` tokens are ambiguous between single elimination and
    round robin; ``default_side`` decides.
    """
    if token == GRAND_FINAL_TOKEN:
        return BracketKey(SIDE_GRAND_FINAL, 1, 1)
    m = _TOKEN_RE.match(token or "")
    if not m:
        raise ValueError(f"Invalid bracket position token: {token!r}")
    rnd, num = int(m.group("round")), int(m.group("match"))
    if m.group("group"):
        return BracketKey(SIDE_GROUP, rnd, num, group_index_from_letter(m.group("group")))
    if m.group("side"):
        return BracketKey(_PREFIX_SIDE[m.group("side")], rnd, num)
    return BracketKey(default_side, rnd, num)


def group_place_token(group_index: int, place: int) -> str:
    """Source token for a knockout slot filled from group standings, e.g. ``GA#1``."""
    return f"G{group_letter(group_index)}#{place}"


def parse_group_place_token(token: str) -> tuple:
    m = re.match(r"^G([A-Z]+)#(\d+)$", token or "")
    if not m:
        raise ValueError(f"Invalid group placement token: {token!r}")
    return group_index_from_letter(m.group(1)), int(m.group(2))
