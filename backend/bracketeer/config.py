"""Environment-driven settings for the bracket engine."""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bracketeer.db")
SQL_ECHO = _env_bool("SQL_ECHO")

# Deadline window for a newly active match when the tournament does not set one
DEFAULT_ROUND_DURATION_HOURS = int(os.getenv("DEFAULT_ROUND_DURATION_HOURS", "48"))
REMINDER_WINDOW_HOURS = int(os.getenv("REMINDER_WINDOW_HOURS", "12"))
WARNING_WINDOW_HOURS = int(os.getenv("WARNING_WINDOW_HOURS", "2"))

# Persistence retry policy (OperationalError only)
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_BACKOFF_SECONDS = float(os.getenv("DB_RETRY_BACKOFF_SECONDS", "0.05"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Hard bounds on roster size at generation time
MIN_PARTICIPANTS = 2
MAX_PARTICIPANTS = 128
