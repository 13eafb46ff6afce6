"""Fingerprint of the fixed game configuration.

Shared by ``/health``, ``/verify``, round telemetry and the audit script;
all of them must report the same value for the same board.
"""
import hashlib
import json

from plinko.config import settings
from plinko.logic import engine


def get_config_hash() -> str:
    """
    Return a 16-char hex hash of the board geometry and payout table.

    Two servers reporting the same hash resolve identical rounds identically.
    """
    config_snapshot = {
        "protocol_version": settings.protocol_version,
        "rows": engine.ROWS,
        "bins": engine.BINS,
        "payout_table": list(engine.PAYOUT_TABLE),
        "base_bias": [engine.BASE_BIAS_MIN, engine.BASE_BIAS_MAX],
        "bias_clamp": [engine.BIAS_FLOOR, engine.BIAS_CEILING],
        "drop_bias_step": engine.DROP_BIAS_STEP,
        "position_bias_step": engine.POSITION_BIAS_STEP,
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
