"""Request validators for the round API."""
from plinko.config import settings
from plinko.errors import ErrorCode, GameError
from plinko.logic.engine import validate_drop_column
from plinko.protocol import StartRequest


def validate_bet(request: StartRequest) -> None:
    """Raises INVALID_BET if betCents is outside the configured bounds."""
    if not settings.min_bet_cents <= request.betCents <= settings.max_bet_cents:
        raise GameError(
            ErrorCode.INVALID_BET,
            f"Bet {request.betCents} cents not allowed. "
            f"Allowed: {settings.min_bet_cents}-{settings.max_bet_cents}",
        )


def validate_client_seed(request: StartRequest) -> None:
    """Raises INVALID_SEED if clientSeed is empty or blank."""
    if not request.clientSeed.strip():
        raise GameError(ErrorCode.INVALID_SEED, "clientSeed must not be empty.")


def validate_start_request(request: StartRequest) -> None:
    """Run all validations on a start request."""
    validate_client_seed(request)
    validate_bet(request)
    validate_drop_column(request.dropColumn)
