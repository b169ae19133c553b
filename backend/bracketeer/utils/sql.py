"""
Row counting for guards (registration capacity, existing brackets).

``session.exec(select(func.count(...))).one()`` comes back as a bare int or as a
1-tuple Row depending on the SQLModel version; count_rows() always returns an int.
"""
from typing import Any

from sqlmodel import Session, func, select


def count_rows(session: Session, column: Any, *criteria: Any) -> int:
    """COUNT(column) over rows matching ``criteria``."""
    value = session.exec(select(func.count(column)).where(*criteria)).one()
    if isinstance(value, int):
        return value
    return int(value[0])
