"""
Bracket engine error taxonomy.

Every error carries a stable ``code``, the HTTP status routes should answer with,
and structured detail (offending ids, expected vs. actual state) via ``to_dict()``.
"""

from typing import Any, Dict, Iterable, Optional


class BracketEngineError(Exception):
    code = "BRACKET_ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.detail}


class InvalidParticipantCount(BracketEngineError):
    code = "INVALID_PARTICIPANT_COUNT"
    status_code = 422

    def __init__(self, count: int, minimum: int, maximum: int):
        super().__init__(
            f"Tournament requires between {minimum} and {maximum} participants, got {count}",
            count=count,
            minimum=minimum,
            maximum=maximum,
        )
        self.count = count


class UnsupportedFormat(BracketEngineError):
    code = "UNSUPPORTED_FORMAT"
    status_code = 422

    def __init__(self, format_token: Optional[str], supported: Iterable[str]):
        super().__init__(
            f"Unsupported tournament format: {format_token}",
            format=format_token,
            supported=sorted(supported),
        )


class UnsupportedSeedingPolicy(BracketEngineError):
    code = "UNSUPPORTED_SEEDING_POLICY"
    status_code = 422

    def __init__(self, policy: Optional[str], supported: Iterable[str]):
        super().__init__(f"Unsupported seeding policy: {policy}", policy=policy, supported=sorted(supported))


class InvalidGroupConfiguration(BracketEngineError):
    code = "INVALID_GROUP_CONFIGURATION"
    status_code = 422


class TournamentNotFound(BracketEngineError):
    code = "TOURNAMENT_NOT_FOUND"
    status_code = 404

    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} not found", tournament_id=tournament_id)


class BracketAlreadyGenerated(BracketEngineError):
    code = "BRACKET_ALREADY_GENERATED"
    status_code = 409

    def __init__(self, tournament_id: int, match_count: int):
        super().__init__(
            f"Tournament {tournament_id} already has {match_count} matches; pass regenerate to rebuild",
            tournament_id=tournament_id,
            match_count=match_count,
        )


class MatchNotFound(BracketEngineError):
    code = "MATCH_NOT_FOUND"
    status_code = 404

    def __init__(self, match_id: int, tournament_id: Optional[int] = None):
        super().__init__(f"Match {match_id} not found", match_id=match_id, tournament_id=tournament_id)


class DependentMatchNotFound(BracketEngineError):
    code = "DEPENDENT_MATCH_NOT_FOUND"
    status_code = 500

    def __init__(self, tournament_id: int, token: str, source_match_id: Optional[int] = None):
        super().__init__(
            f"Bracket position {token} does not exist in tournament {tournament_id}",
            tournament_id=tournament_id,
            bracket_position=token,
            source_match_id=source_match_id,
        )


class SlotConflict(BracketEngineError):
    code = "SLOT_CONFLICT"
    status_code = 409

    def __init__(self, match_id: int, slot: int, expected: int, actual: Optional[int]):
        super().__init__(
            f"Slot {slot} of match {match_id} already holds participant {actual}",
            match_id=match_id,
            slot=slot,
            expected=expected,
            actual=actual,
        )


class AlreadyResolved(BracketEngineError):
    """Resolution attempted on a completed match with a different winner."""

    code = "ALREADY_RESOLVED"
    status_code = 409

    def __init__(self, match_id: int, recorded_winner_id: Optional[int], requested_winner_id: Optional[int]):
        super().__init__(
            f"Match {match_id} is already resolved",
            match_id=match_id,
            recorded_winner_id=recorded_winner_id,
            requested_winner_id=requested_winner_id,
        )
        self.match_id = match_id
        self.recorded_winner_id = recorded_winner_id


class InvalidWinner(BracketEngineError):
    code = "INVALID_WINNER"
    status_code = 422

    def __init__(self, match_id: int, winner_id: Optional[int], occupants: Iterable[Optional[int]]):
        super().__init__(
            f"Participant {winner_id} is not an occupant of match {match_id}",
            match_id=match_id,
            winner_id=winner_id,
            occupants=list(occupants),
        )


class MatchNotReady(BracketEngineError):
    code = "MATCH_NOT_READY"
    status_code = 409

    def __init__(self, match_id: int, status: str):
        super().__init__(
            f"Match {match_id} cannot take a result while {status}",
            match_id=match_id,
            status=status,
            expected=["ready", "active"],
        )


class NotDoubleForfeit(BracketEngineError):
    code = "NOT_DOUBLE_FORFEIT"
    status_code = 409

    def __init__(self, match_id: int, status: str):
        super().__init__(
            f"Match {match_id} is not an unresolved double forfeit",
            match_id=match_id,
            status=status,
        )


class SubmissionNotFound(BracketEngineError):
    code = "SUBMISSION_NOT_FOUND"
    status_code = 404

    def __init__(self, submission_id: int, match_id: int):
        super().__init__(
            f"Submission {submission_id} not found for match {match_id}",
            submission_id=submission_id,
            match_id=match_id,
        )


class InvalidSubmission(BracketEngineError):
    code = "INVALID_SUBMISSION"
    status_code = 422


class IllegalMatchState(BracketEngineError):
    code = "ILLEGAL_MATCH_STATE"
    status_code = 500

    def __init__(self, match_id: Optional[int], reason: str):
        super().__init__(f"Match {match_id} is in an illegal state: {reason}", match_id=match_id, reason=reason)
