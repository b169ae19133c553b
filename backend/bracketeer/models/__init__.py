from bracketeer.models.match import Match
from bracketeer.models.match_result import MatchResultSubmission
from bracketeer.models.notification import NotificationOutbox
from bracketeer.models.participant import Participant
from bracketeer.models.tournament import Tournament
from bracketeer.models.tournament_log import TournamentLog
from bracketeer.models.tournament_round import TournamentRound

__all__ = [
    "Tournament",
    "Participant",
    "Match",
    "TournamentRound",
    "MatchResultSubmission",
    "NotificationOutbox",
    "TournamentLog",
]
