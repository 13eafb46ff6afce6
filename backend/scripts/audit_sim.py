#!/usr/bin/env python3
"""
Audit simulation for the Plinko board.

Runs the real outcome engine over deterministically derived combined seeds
and writes a one-row CSV summary (RTP, hit frequency, bin distribution).

Usage:
    python -m scripts.audit_sim --rounds 100000 --seed AUDIT_2025 --out out/audit_center.csv
    python -m scripts.audit_sim --rounds 50000 --seed AUDIT_2025 --drop-column 0 --out out/audit_edge.csv
"""
import argparse
import csv
import math
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plinko.config_hash import get_config_hash
from plinko.logic.engine import BINS, PAYOUT_TABLE, ROWS, OutcomeEngine
from plinko.logic.hashing import sha256_hex


DEFAULT_DROP_COLUMN = ROWS // 2


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    total_wagered: float = 0.0
    total_won: float = 0.0
    rounds: int = 0
    wins: int = 0  # rounds paying more than the stake
    bin_counts: list[int] = field(default_factory=lambda: [0] * BINS)
    max_multiplier_observed: float = 0.0

    @property
    def rtp(self) -> float:
        return (self.total_won / self.total_wagered * 100) if self.total_wagered > 0 else 0.0

    @property
    def hit_freq(self) -> float:
        return (self.wins / self.rounds * 100) if self.rounds > 0 else 0.0

    def bin_rate(self, bin_index: int) -> float:
        return (self.bin_counts[bin_index] / self.rounds * 100) if self.rounds > 0 else 0.0


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return "unknown"


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def round_seed(seed_str: str, round_index: int) -> str:
    """Combined seed for simulated round ``round_index``."""
    return sha256_hex(f"{seed_str}:{round_index}")


def theoretical_rtp_uniform() -> float:
    """
    RTP (%) of an unbiased board where every peg is a fair coin.

    Bins then follow Binomial(ROWS, 0.5); the real board's biases pull the
    ball toward the center, so its RTP sits below this figure.
    """
    total = 2 ** ROWS
    expected = sum(
        math.comb(ROWS, k) / total * multiplier
        for k, multiplier in enumerate(PAYOUT_TABLE)
    )
    return expected * 100


def run_simulation(
    rounds: int,
    seed_str: str,
    drop_column: int = DEFAULT_DROP_COLUMN,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run headless simulation.

    Args:
        rounds: Number of rounds to simulate
        seed_str: Seed string for reproducibility
        drop_column: Column every simulated ball is dropped above
        verbose: Print progress

    Returns:
        SimulationStats with aggregated results
    """
    engine = OutcomeEngine()
    stats = SimulationStats()
    progress_interval = max(1, rounds // 100)

    for round_index in range(rounds):
        if verbose and round_index % progress_interval == 0:
            pct = (round_index / rounds) * 100
            print(f"\rProgress: {pct:.1f}%", end="", flush=True)

        result = engine.generate_game_result(round_seed(seed_str, round_index), drop_column)
        multiplier = engine.calculate_payout_multiplier(result.bin_index)

        stats.rounds += 1
        stats.total_wagered += 1.0
        stats.total_won += multiplier
        stats.bin_counts[result.bin_index] += 1
        if multiplier > 1.0:
            stats.wins += 1
        if multiplier > stats.max_multiplier_observed:
            stats.max_multiplier_observed = multiplier

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def generate_csv(
    rounds: int,
    seed_str: str,
    drop_column: int,
    stats: SimulationStats,
    output_path: str,
) -> None:
    """Write the audit summary row."""
    row = {
        "timestamp": get_timestamp_iso(),
        "git_commit": get_git_commit(),
        "config_hash": get_config_hash(),
        "drop_column": drop_column,
        "rounds": rounds,
        "seed": seed_str,
        "rtp": f"{stats.rtp:.4f}",
        "rtp_uniform_board": f"{theoretical_rtp_uniform():.4f}",
        "hit_freq": f"{stats.hit_freq:.4f}",
        "max_multiplier": f"{stats.max_multiplier_observed:.2f}",
    }
    for bin_index in range(BINS):
        row[f"bin_{bin_index}_rate"] = f"{stats.bin_rate(bin_index):.4f}"

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Plinko audit simulation")
    parser.add_argument("--rounds", type=int, required=True, help="Number of rounds to simulate")
    parser.add_argument("--seed", type=str, required=True, help="Seed string for reproducibility")
    parser.add_argument("--out", type=str, required=True, help="Output CSV path")
    parser.add_argument(
        "--drop-column",
        type=int,
        default=DEFAULT_DROP_COLUMN,
        choices=range(0, ROWS + 1),
        metavar=f"0-{ROWS}",
        help="Drop column for every simulated round",
    )
    parser.add_argument("--verbose", action="store_true", help="Show progress")

    args = parser.parse_args(argv)

    print(f"Running simulation: rounds={args.rounds}, seed={args.seed}, drop_column={args.drop_column}")
    print(f"Config hash: {get_config_hash()}")

    stats = run_simulation(
        rounds=args.rounds,
        seed_str=args.seed,
        drop_column=args.drop_column,
        verbose=args.verbose,
    )

    generate_csv(
        rounds=args.rounds,
        seed_str=args.seed,
        drop_column=args.drop_column,
        stats=stats,
        output_path=args.out,
    )

    print(f"\nSummary:")
    print(f"  Rounds: {stats.rounds}")
    print(f"  RTP: {stats.rtp:.4f}% (uniform board: {theoretical_rtp_uniform():.4f}%)")
    print(f"  Hit frequency: {stats.hit_freq:.4f}%")
    print(f"  Max multiplier observed: {stats.max_multiplier_observed:.2f}x")
    for bin_index in range(BINS):
        print(f"  Bin {bin_index:2d}: {stats.bin_counts[bin_index]} ({stats.bin_rate(bin_index):.4f}%)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
