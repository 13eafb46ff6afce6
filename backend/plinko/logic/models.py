"""Value types for rounds, peg maps and drop paths."""
import json
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from plinko.errors import InvariantViolation


class Direction(str, Enum):
    """Which way the ball left a peg."""
    LEFT = "L"
    RIGHT = "R"


class RoundStatus(str, Enum):
    """Round lifecycle: COMMITTED -> COMPLETED -> REVEALED, no skips."""
    COMMITTED = "committed"
    COMPLETED = "completed"
    REVEALED = "revealed"


def peg_index(row: int, col: int) -> int:
    """Position of peg (row, col) in row-major triangular order."""
    return row * (row + 1) // 2 + col


class PegBias(BaseModel):
    """Probability that the ball moves left at peg (row, col)."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    left_bias: float


class PegMap(BaseModel):
    """
    Triangular bias map, stored flat in generation order.

    Row ``r`` holds columns ``0..r``, so peg (r, c) lives at
    ``r * (r + 1) // 2 + c``.
    """
    model_config = ConfigDict(frozen=True)

    rows: int
    drop_column: int
    pegs: tuple[PegBias, ...]

    def at(self, row: int, col: int) -> PegBias:
        """Return the peg at (row, col); a miss is an engine defect."""
        if not (0 <= row < self.rows and 0 <= col <= row):
            raise InvariantViolation(f"No peg found at row {row}, col {col}")
        peg = self.pegs[peg_index(row, col)]
        if peg.row != row or peg.col != col:
            raise InvariantViolation(
                f"Peg map out of order: expected ({row}, {col}), found ({peg.row}, {peg.col})"
            )
        return peg

    def canonical_json(self) -> str:
        """
        Stable encoding hashed into ``pegMapHash``.

        A compact JSON array of ``{"row","col","leftBias"}`` objects in
        generation order. Field order and float formatting are part of the
        published hash and must not change.
        """
        return json.dumps(
            [{"row": p.row, "col": p.col, "leftBias": p.left_bias} for p in self.pegs],
            separators=(",", ":"),
        )

    def __len__(self) -> int:
        return len(self.pegs)


class PathStep(BaseModel):
    """One decision point of a drop."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    direction: Direction
    bias: float
    rand_value: float

    def to_wire(self) -> dict:
        return {
            "row": self.row,
            "col": self.col,
            "direction": self.direction.value,
            "bias": self.bias,
            "randValue": self.rand_value,
        }


class GameResult(BaseModel):
    """Complete, immutable outcome of one drop."""
    model_config = ConfigDict(frozen=True)

    bin_index: int
    path: tuple[PathStep, ...]
    peg_map: PegMap
    peg_map_hash: str

    @property
    def right_moves(self) -> int:
        return sum(1 for step in self.path if step.direction == Direction.RIGHT)

    def path_wire(self) -> list[dict]:
        return [step.to_wire() for step in self.path]


class Round(BaseModel):
    """
    One commit/reveal cycle as persisted by the round store.

    Fields after ``commit_hash`` stay empty until the round is played.
    """
    round_id: str
    status: RoundStatus = RoundStatus.COMMITTED
    server_seed: str
    nonce: str
    commit_hash: str
    created_at: datetime

    client_seed: str | None = None
    combined_seed: str | None = None
    drop_column: int | None = None
    bin_index: int | None = None
    payout_multiplier: float | None = None
    bet_cents: int | None = None
    win_amount: int | None = None
    path: list[PathStep] = Field(default_factory=list)
    peg_map_hash: str | None = None
    completed_at: datetime | None = None
    revealed_at: datetime | None = None

    @property
    def is_revealed(self) -> bool:
        return self.status == RoundStatus.REVEALED
