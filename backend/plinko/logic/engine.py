"""Outcome engine: peg bias map, drop simulation and payouts.

The order in which generator draws are consumed is part of the published
outcome. Peg map generation takes ROWS * (ROWS + 1) / 2 draws in row-major,
column-ascending order; the drop then takes one draw per row from the same
generator.
"""
import logging

from plinko.errors import ErrorCode, GameError, InvariantViolation
from plinko.logic.hashing import sha256_hex
from plinko.logic.models import Direction, GameResult, PathStep, PegBias, PegMap
from plinko.logic.rng import SeededGenerator

logger = logging.getLogger(__name__)


# === BOARD GEOMETRY (fixed for this game, not configurable) ===
ROWS = 12
BINS = ROWS + 1
CENTER_COLUMN = ROWS / 2
PEG_COUNT = ROWS * (ROWS + 1) // 2

# Peg bias
BASE_BIAS_MIN = 0.4
BASE_BIAS_MAX = 0.6
DROP_BIAS_STEP = 0.01
POSITION_BIAS_STEP = 0.01
BIAS_FLOOR = 0.35
BIAS_CEILING = 0.65

# Payout multipliers per bin, symmetric about the center bin
PAYOUT_TABLE: tuple[float, ...] = (
    33.0,  # Bin 0 (far left)
    16.0,
    9.0,
    5.0,
    3.0,
    1.5,
    1.0,  # Bin 6 (center)
    1.5,
    3.0,
    5.0,
    9.0,
    16.0,
    33.0,  # Bin 12 (far right)
)
DEFAULT_MULTIPLIER = 1.0


def validate_drop_column(drop_column: int) -> None:
    """Raise INVALID_DROP_COLUMN unless 0 <= drop_column <= ROWS."""
    if isinstance(drop_column, bool) or not isinstance(drop_column, int):
        raise GameError(
            ErrorCode.INVALID_DROP_COLUMN,
            f"Invalid dropColumn: {drop_column!r}. Must be an integer 0-{ROWS}",
        )
    if drop_column < 0 or drop_column > ROWS:
        raise GameError(
            ErrorCode.INVALID_DROP_COLUMN,
            f"Invalid dropColumn: {drop_column}. Must be 0-{ROWS}",
        )


class OutcomeEngine:
    """
    Deterministic Plinko outcome engine.

    Stateless: every call builds its own generator from the combined seed,
    so one instance can serve concurrent rounds.
    """

    rows = ROWS

    def generate_peg_map(self, generator: SeededGenerator, drop_column: int) -> PegMap:
        """
        Draw a left bias for every peg.

        Each peg gets a base bias in [0.4, 0.6), shifted by how far the drop
        column sits from center and how far the peg sits from its row's
        center, then clamped to [0.35, 0.65].
        """
        drop_bias = (drop_column - CENTER_COLUMN) * DROP_BIAS_STEP
        pegs: list[PegBias] = []
        for row in range(ROWS):
            for col in range(row + 1):
                left_bias = generator.next_float(BASE_BIAS_MIN, BASE_BIAS_MAX)
                position_bias = (col - row / 2) * POSITION_BIAS_STEP
                left_bias += drop_bias + position_bias
                left_bias = max(BIAS_FLOOR, min(BIAS_CEILING, left_bias))
                pegs.append(PegBias(row=row, col=col, left_bias=left_bias))
        return PegMap(rows=ROWS, drop_column=drop_column, pegs=tuple(pegs))

    def simulate_drop(
        self,
        generator: SeededGenerator,
        peg_map: PegMap,
        drop_column: int,
    ) -> tuple[list[PathStep], int]:
        """
        Walk the ball from the apex peg down every row.

        The ball enters at (0, 0); the drop column only shapes the bias map,
        so ``peg_map`` must have been generated for the same column. Moving
        right increments the column, moving left keeps it, hence the bin
        equals the number of right moves.
        """
        if peg_map.drop_column != drop_column:
            raise GameError(
                ErrorCode.INVALID_DROP_COLUMN,
                f"Peg map was generated for dropColumn {peg_map.drop_column}, not {drop_column}",
            )

        path: list[PathStep] = []
        current_col = 0
        for row in range(ROWS):
            try:
                peg = peg_map.at(row, current_col)
            except InvariantViolation:
                logger.error(
                    "Drop left the peg lattice at row=%d col=%d (drop_column=%d)",
                    row,
                    current_col,
                    drop_column,
                )
                raise

            rand_value = generator.next()
            goes_left = rand_value < peg.left_bias
            path.append(
                PathStep(
                    row=row,
                    col=current_col,
                    direction=Direction.LEFT if goes_left else Direction.RIGHT,
                    bias=peg.left_bias,
                    rand_value=rand_value,
                )
            )
            if not goes_left:
                current_col += 1

        return path, current_col

    def generate_game_result(self, combined_seed_hex: str, drop_column: int) -> GameResult:
        """
        Compute the complete outcome for a combined seed and drop column.

        Raises GameError (INVALID_DROP_COLUMN / INVALID_SEED) on bad input;
        never returns a partial result.
        """
        validate_drop_column(drop_column)
        generator = SeededGenerator(combined_seed_hex)
        peg_map = self.generate_peg_map(generator, drop_column)
        peg_map_hash = sha256_hex(peg_map.canonical_json())
        path, bin_index = self.simulate_drop(generator, peg_map, drop_column)
        return GameResult(
            bin_index=bin_index,
            path=tuple(path),
            peg_map=peg_map,
            peg_map_hash=peg_map_hash,
        )

    def verify_game_result(
        self,
        combined_seed_hex: str,
        drop_column: int,
        expected_bin_index: int,
        expected_peg_map_hash: str,
    ) -> bool:
        """Recompute the outcome and compare; never raises."""
        try:
            result = self.generate_game_result(combined_seed_hex, drop_column)
        except Exception as e:
            logger.warning(
                "Verification recomputation failed (drop_column=%r): %s",
                drop_column,
                e,
            )
            return False
        return (
            result.bin_index == expected_bin_index
            and result.peg_map_hash == expected_peg_map_hash
        )

    @staticmethod
    def calculate_payout_multiplier(bin_index: int) -> float:
        """Multiplier for a bin; out-of-range bins fall back to 1.0."""
        if 0 <= bin_index < len(PAYOUT_TABLE):
            return PAYOUT_TABLE[bin_index]
        return DEFAULT_MULTIPLIER


engine = OutcomeEngine()
