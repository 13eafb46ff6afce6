"""Provably-fair Plinko FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query

from plinko.config import settings
from plinko.config_hash import get_config_hash
from plinko.errors import ErrorCode, GameError
from plinko.logic.fairness import fairness
from plinko.logic.models import Round
from plinko.middleware import ErrorHandlerMiddleware
from plinko.protocol import (
    CommitRequest,
    CommitResponse,
    RevealResponse,
    RoundResponse,
    StartRequest,
    StartResponse,
    VerifyResponse,
    path_out,
)
from plinko.redis_service import redis_service
from plinko.telemetry import (
    RoundCommittedEvent,
    RoundCompletedEvent,
    RoundRejectedEvent,
    RoundRevealedEvent,
    RoundVerifiedEvent,
    telemetry_service,
)
from plinko.validators import validate_start_request

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and manage the Redis connection lifecycle."""
    logging.getLogger("plinko").setLevel(settings.log_level)
    await redis_service.connect()
    yield
    await redis_service.close()


app = FastAPI(
    title="Provably Fair Plinko",
    version="0.1.0",
    description="Commit-reveal round server for a 12-row Plinko board",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)


def _round_response(round_: Round) -> RoundResponse:
    return RoundResponse(
        roundId=round_.round_id,
        status=round_.status.value,
        nonce=round_.nonce,
        commitHash=round_.commit_hash,
        serverSeed=round_.server_seed if round_.is_revealed else None,
        clientSeed=round_.client_seed,
        combinedSeed=round_.combined_seed,
        dropColumn=round_.drop_column,
        binIndex=round_.bin_index,
        payoutMultiplier=round_.payout_multiplier,
        betCents=round_.bet_cents,
        winAmount=round_.win_amount,
        pegMapHash=round_.peg_map_hash,
        path=path_out(round_.path),
        createdAt=round_.created_at,
        completedAt=round_.completed_at,
        revealedAt=round_.revealed_at,
    )


def _emit_rejected(round_id: str, error: GameError, lock_start: float) -> None:
    if error.code in (ErrorCode.ROUND_IN_PROGRESS, ErrorCode.INVALID_ROUND_STATE):
        telemetry_service.emit_round_rejected(
            RoundRejectedEvent(
                round_id=round_id,
                reason=error.code.value,
                lock_acquire_ms=(time.monotonic() - lock_start) * 1000,
            )
        )


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "configHash": get_config_hash()}


@app.post("/rounds/commit")
async def commit_round(body: CommitRequest | None = None) -> dict:
    """
    POST /rounds/commit.

    Creates a round, stores the server seed privately and publishes only
    the commitment and nonce.
    """
    round_ = fairness.commit(nonce=body.nonce if body else None)
    await redis_service.save_round(round_)

    telemetry_service.emit_round_committed(
        RoundCommittedEvent(
            round_id=round_.round_id,
            commit_hash=round_.commit_hash,
            nonce=round_.nonce,
        )
    )

    return CommitResponse(
        roundId=round_.round_id,
        commitHash=round_.commit_hash,
        nonce=round_.nonce,
    ).model_dump()


@app.post("/rounds/{round_id}/start")
async def start_round(round_id: str, body: StartRequest) -> dict:
    """
    POST /rounds/{id}/start.

    Resolves a committed round. Concurrent starts on the same round are
    serialized by the round lock; only one moves it to completed.
    """
    validate_start_request(body)

    lock_start = time.monotonic()
    try:
        async with redis_service.round_lock(round_id) as lock_metrics:
            round_ = await redis_service.require_round(round_id)
            completed, result = fairness.play(
                round_,
                client_seed=body.clientSeed,
                drop_column=body.dropColumn,
                bet_cents=body.betCents,
            )
            await redis_service.save_round(completed)

            telemetry_service.emit_round_completed(
                RoundCompletedEvent(
                    round_id=round_id,
                    drop_column=body.dropColumn,
                    bin_index=result.bin_index,
                    payout_multiplier=completed.payout_multiplier,
                    bet_cents=body.betCents,
                    win_amount_cents=completed.win_amount,
                    lock_acquire_ms=lock_metrics.acquire_ms,
                    config_hash=get_config_hash(),
                )
            )

            return StartResponse(
                roundId=round_id,
                path=path_out(result.path),
                binIndex=result.bin_index,
                payoutMultiplier=completed.payout_multiplier,
                winAmount=completed.win_amount,
                pegMapHash=result.peg_map_hash,
            ).model_dump()
    except GameError as e:
        _emit_rejected(round_id, e, lock_start)
        raise


@app.post("/rounds/{round_id}/reveal")
async def reveal_round(round_id: str) -> dict:
    """POST /rounds/{id}/reveal. Discloses the server seed of a completed round."""
    lock_start = time.monotonic()
    try:
        async with redis_service.round_lock(round_id):
            round_ = await redis_service.require_round(round_id)
            revealed = fairness.reveal(round_)
            await redis_service.save_round(revealed)
    except GameError as e:
        _emit_rejected(round_id, e, lock_start)
        raise

    telemetry_service.emit_round_revealed(
        RoundRevealedEvent(
            round_id=round_id,
            revealed_at=revealed.revealed_at.isoformat(),
        )
    )

    return RevealResponse(
        roundId=round_id,
        serverSeed=revealed.server_seed,
        revealedAt=revealed.revealed_at,
    ).model_dump()


@app.get("/rounds/{round_id}")
async def get_round(round_id: str) -> dict:
    """GET /rounds/{id}. The server seed is hidden until the round is revealed."""
    round_ = await redis_service.require_round(round_id)
    return _round_response(round_).model_dump()


@app.get("/verify")
async def verify(
    serverSeed: str = Query(..., min_length=1),
    clientSeed: str = Query(..., min_length=1),
    nonce: str = Query(..., min_length=1),
    dropColumn: int = Query(...),
    binIndex: int | None = Query(default=None),
    pegMapHash: str | None = Query(default=None),
    commitHash: str | None = Query(default=None),
) -> dict:
    """
    GET /verify.

    Recomputes a round from its revealed inputs. Needs no stored state, so
    anyone can run the same computation independently.
    """
    report = fairness.verify(
        server_seed=serverSeed,
        client_seed=clientSeed,
        nonce=nonce,
        drop_column=dropColumn,
        expected_bin_index=binIndex,
        expected_peg_map_hash=pegMapHash,
        expected_commit_hash=commitHash,
    )

    telemetry_service.emit_round_verified(
        RoundVerifiedEvent(
            is_verified=report.is_verified,
            bin_index=report.bin_index,
            drop_column=dropColumn,
            commit_checked=report.commit_checked,
        )
    )

    return VerifyResponse(
        isVerified=report.is_verified,
        commitHash=report.commit_hash,
        combinedSeed=report.combined_seed,
        binIndex=report.bin_index,
        pegMapHash=report.peg_map_hash,
        payoutMultiplier=report.payout_multiplier,
        path=path_out(report.result.path),
        configHash=get_config_hash(),
        mismatches=report.mismatches,
        message=(
            "Round verified successfully! Results match."
            if report.is_verified
            else "Verification failed. Results do not match."
        ),
    ).model_dump()
