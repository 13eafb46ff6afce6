"""Error codes and exceptions for the round server."""
from enum import Enum

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from plinko.config import settings


class ErrorCode(str, Enum):
    """Error codes surfaced to API clients."""

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_DROP_COLUMN = "INVALID_DROP_COLUMN"
    INVALID_SEED = "INVALID_SEED"
    INVALID_BET = "INVALID_BET"
    ROUND_NOT_FOUND = "ROUND_NOT_FOUND"
    INVALID_ROUND_STATE = "INVALID_ROUND_STATE"
    ROUND_IN_PROGRESS = "ROUND_IN_PROGRESS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INVALID_DROP_COLUMN: 400,
    ErrorCode.INVALID_SEED: 400,
    ErrorCode.INVALID_BET: 400,
    ErrorCode.ROUND_NOT_FOUND: 404,
    ErrorCode.INVALID_ROUND_STATE: 409,
    ErrorCode.ROUND_IN_PROGRESS: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.INVALID_REQUEST: False,
    ErrorCode.INVALID_DROP_COLUMN: False,
    ErrorCode.INVALID_SEED: False,
    ErrorCode.INVALID_BET: False,
    ErrorCode.ROUND_NOT_FOUND: False,
    ErrorCode.INVALID_ROUND_STATE: False,
    ErrorCode.ROUND_IN_PROGRESS: True,
    ErrorCode.INTERNAL_ERROR: True,
}


class ErrorBody(BaseModel):
    """Error body shape."""

    code: str
    message: str
    recoverable: bool


class ErrorResponse(BaseModel):
    """Full error response."""

    protocolVersion: str = settings.protocol_version
    error: ErrorBody


def error_response(code: ErrorCode, message: str) -> JSONResponse:
    """Render an error code and message as a protocol error response."""
    return JSONResponse(
        status_code=ERROR_HTTP_STATUS[code],
        content=ErrorResponse(
            error=ErrorBody(
                code=code.value,
                message=message,
                recoverable=ERROR_RECOVERABLE[code],
            )
        ).model_dump(),
    )


class GameError(Exception):
    """Invalid-argument or invalid-state error that maps to a protocol response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.status_code = ERROR_HTTP_STATUS[code]
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        return error_response(self.code, self.message)


class InvariantViolation(Exception):
    """
    Internal defect: the engine reached a state its construction rules out.

    Deliberately not a GameError. Callers must not treat it as bad input;
    it is reported as INTERNAL_ERROR and logged.
    """
