from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from bracketeer.config import DATABASE_URL, SQL_ECHO

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from bracketeer.models.match import Match  # noqa: F401
    from bracketeer.models.match_result import MatchResultSubmission  # noqa: F401
    from bracketeer.models.notification import NotificationOutbox  # noqa: F401
    from bracketeer.models.participant import Participant  # noqa: F401
    from bracketeer.models.tournament import Tournament  # noqa: F401
    from bracketeer.models.tournament_log import TournamentLog  # noqa: F401
    from bracketeer.models.tournament_round import TournamentRound  # noqa: F401

    SQLModel.metadata.create_all(engine)
