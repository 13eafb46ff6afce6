#!/usr/bin/env python3
"""
Offline verifier for a revealed round.

Recomputes commitment, combined seed and outcome locally, with no call to
the operator's server.

Usage:
    python -m scripts.verify_round --server-seed <hex> --client-seed hello --nonce 42 \
        --drop-column 6 --bin-index 7 --peg-map-hash <hex> --commit-hash <hex>

Exit codes: 0 verified, 1 mismatch, 2 invalid input.
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plinko.config_hash import get_config_hash
from plinko.errors import GameError
from plinko.logic.fairness import FairnessProtocol


def build_report(args: argparse.Namespace) -> dict:
    """Run verification and shape the output like GET /verify."""
    report = FairnessProtocol().verify(
        server_seed=args.server_seed,
        client_seed=args.client_seed,
        nonce=args.nonce,
        drop_column=args.drop_column,
        expected_bin_index=args.bin_index,
        expected_peg_map_hash=args.peg_map_hash,
        expected_commit_hash=args.commit_hash,
    )
    output = {
        "isVerified": report.is_verified,
        "commitHash": report.commit_hash,
        "combinedSeed": report.combined_seed,
        "binIndex": report.bin_index,
        "pegMapHash": report.peg_map_hash,
        "payoutMultiplier": report.payout_multiplier,
        "configHash": get_config_hash(),
        "mismatches": report.mismatches,
    }
    if args.show_path:
        output["path"] = report.result.path_wire()
    return output


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Verify a revealed Plinko round")
    parser.add_argument("--server-seed", required=True, help="Revealed server seed")
    parser.add_argument("--client-seed", required=True, help="Client seed used for the round")
    parser.add_argument("--nonce", required=True, help="Round nonce")
    parser.add_argument("--drop-column", type=int, required=True, help="Drop column (0-12)")
    parser.add_argument("--bin-index", type=int, default=None, help="Published bin index")
    parser.add_argument("--peg-map-hash", default=None, help="Published peg map hash")
    parser.add_argument("--commit-hash", default=None, help="Commitment published before play")
    parser.add_argument("--show-path", action="store_true", help="Include the recomputed path")

    args = parser.parse_args(argv)

    try:
        output = build_report(args)
    except GameError as e:
        print(json.dumps({"error": {"code": e.code.value, "message": e.message}}))
        return 2

    print(json.dumps(output, indent=2))
    return 0 if output["isVerified"] else 1


if __name__ == "__main__":
    sys.exit(main())
