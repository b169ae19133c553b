from fastapi import HTTPException

from bracketeer.services.errors import BracketEngineError


def to_http_exception(exc: BracketEngineError) -> HTTPException:
    """Map an engine error to the HTTP status and structured detail it declares."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
