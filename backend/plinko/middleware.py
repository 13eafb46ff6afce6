"""Middleware for error handling."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from plinko.errors import ErrorCode, GameError, InvariantViolation, error_response

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert exceptions to protocol-compliant responses."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except GameError as e:
            return e.to_response()
        except InvariantViolation as e:
            logger.error("Invariant violation on %s: %s", request.url.path, e)
            return error_response(ErrorCode.INTERNAL_ERROR, "Internal engine error.")
        except Exception as e:
            logger.exception("Unhandled error on %s", request.url.path)
            return error_response(ErrorCode.INTERNAL_ERROR, str(e))
