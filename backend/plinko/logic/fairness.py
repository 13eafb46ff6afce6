"""Commit-reveal protocol around the outcome engine.

Round flow:
1. commit: fresh server seed + nonce, publish ``commitHash`` only.
2. play: client seed + drop column -> combined seed -> outcome + payout.
3. reveal: disclose the server seed.
4. verify: anyone recomputes 1-2 from the revealed inputs.

The protocol computes new ``Round`` values; persisting them is the caller's job.
"""
import math
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from plinko.config import settings
from plinko.errors import ErrorCode, GameError
from plinko.logic import hashing
from plinko.logic.engine import OutcomeEngine, engine as default_engine
from plinko.logic.models import GameResult, Round, RoundStatus
from plinko.logic.rng import RandomSource, SecureRandomSource


def calculate_win_amount(bet_cents: int, payout_multiplier: float) -> int:
    """Stake times multiplier in cents, halves rounded up."""
    return math.floor(bet_cents * payout_multiplier + 0.5)


class VerificationReport(BaseModel):
    """Result of recomputing a round from its revealed inputs."""

    is_verified: bool
    commit_hash: str
    combined_seed: str
    bin_index: int
    peg_map_hash: str
    payout_multiplier: float
    result: GameResult
    commit_checked: bool = False
    mismatches: list[str] = Field(default_factory=list)


class FairnessProtocol:
    """
    Orchestrates commit, play, reveal and verification.

    The commit step draws from an injected ``RandomSource``; outcome
    computation never touches it.
    """

    def __init__(
        self,
        random_source: RandomSource | None = None,
        outcome_engine: OutcomeEngine | None = None,
    ):
        self.random_source = random_source or SecureRandomSource()
        self.engine = outcome_engine or default_engine

    def new_nonce(self) -> str:
        return str(self.random_source.randbelow(settings.nonce_max))

    def commit(
        self,
        nonce: str | None = None,
        round_id: str | None = None,
        now: datetime | None = None,
    ) -> Round:
        """
        Start a round: pick a server seed and nonce and commit to them.

        Only ``commit_hash`` and ``nonce`` may be shown to the player until
        the round is revealed.
        """
        if nonce is None:
            nonce = self.new_nonce()
        elif not (nonce.isascii() and nonce.isdigit()):
            raise GameError(
                ErrorCode.INVALID_REQUEST,
                f"Nonce must be a decimal string, got {nonce!r}",
            )

        server_seed = self.random_source.token_hex(settings.server_seed_bytes)
        return Round(
            round_id=round_id or str(uuid.uuid4()),
            status=RoundStatus.COMMITTED,
            server_seed=server_seed,
            nonce=nonce,
            commit_hash=hashing.commit_hash(server_seed, nonce),
            created_at=now or datetime.now(timezone.utc),
        )

    def play(
        self,
        round_: Round,
        client_seed: str,
        drop_column: int,
        bet_cents: int = 0,
        now: datetime | None = None,
    ) -> tuple[Round, GameResult]:
        """
        Resolve a committed round.

        Returns the completed round and the full result. Raises
        INVALID_ROUND_STATE unless the round is COMMITTED.
        """
        if round_.status != RoundStatus.COMMITTED:
            raise GameError(
                ErrorCode.INVALID_ROUND_STATE,
                f"Round {round_.round_id} is {round_.status.value}, expected committed",
            )
        if not client_seed:
            raise GameError(ErrorCode.INVALID_SEED, "Client seed must not be empty")

        combined = hashing.combined_seed(round_.server_seed, client_seed, round_.nonce)
        result = self.engine.generate_game_result(combined, drop_column)
        multiplier = self.engine.calculate_payout_multiplier(result.bin_index)

        completed = round_.model_copy(
            update={
                "status": RoundStatus.COMPLETED,
                "client_seed": client_seed,
                "combined_seed": combined,
                "drop_column": drop_column,
                "bin_index": result.bin_index,
                "payout_multiplier": multiplier,
                "bet_cents": bet_cents,
                "win_amount": calculate_win_amount(bet_cents, multiplier),
                "path": list(result.path),
                "peg_map_hash": result.peg_map_hash,
                "completed_at": now or datetime.now(timezone.utc),
            }
        )
        return completed, result

    def reveal(self, round_: Round, now: datetime | None = None) -> Round:
        """Disclose the server seed of a completed round."""
        if round_.status != RoundStatus.COMPLETED:
            raise GameError(
                ErrorCode.INVALID_ROUND_STATE,
                f"Round {round_.round_id} is {round_.status.value}, expected completed",
            )
        return round_.model_copy(
            update={
                "status": RoundStatus.REVEALED,
                "revealed_at": now or datetime.now(timezone.utc),
            }
        )

    def verify(
        self,
        server_seed: str,
        client_seed: str,
        nonce: str,
        drop_column: int,
        expected_bin_index: int | None = None,
        expected_peg_map_hash: str | None = None,
        expected_commit_hash: str | None = None,
    ) -> VerificationReport:
        """
        Recompute a round from its revealed inputs.

        Every expectation supplied must match for ``is_verified``. Invalid
        inputs (e.g. a drop column outside the board) raise GameError since
        nothing can be recomputed from them.
        """
        commit = hashing.commit_hash(server_seed, nonce)
        combined = hashing.combined_seed(server_seed, client_seed, nonce)
        result = self.engine.generate_game_result(combined, drop_column)

        mismatches: list[str] = []
        if expected_commit_hash is not None and not hashing.verify_commit(
            expected_commit_hash, server_seed, nonce
        ):
            mismatches.append("commitHash")

        # Unsupplied expectations are taken from the recomputation
        bin_index = result.bin_index if expected_bin_index is None else expected_bin_index
        peg_map_hash = result.peg_map_hash if expected_peg_map_hash is None else expected_peg_map_hash
        outcome_verified = self.engine.verify_game_result(
            combined, drop_column, bin_index, peg_map_hash
        )
        if not outcome_verified:
            # The report names each published field that disagrees
            if bin_index != result.bin_index:
                mismatches.append("binIndex")
            if peg_map_hash != result.peg_map_hash:
                mismatches.append("pegMapHash")

        return VerificationReport(
            is_verified=outcome_verified and not mismatches,
            commit_hash=commit,
            combined_seed=combined,
            bin_index=result.bin_index,
            peg_map_hash=result.peg_map_hash,
            payout_multiplier=self.engine.calculate_payout_multiplier(result.bin_index),
            result=result,
            commit_checked=expected_commit_hash is not None,
            mismatches=mismatches,
        )


fairness = FairnessProtocol()
