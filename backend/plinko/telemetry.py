"""Server-side round telemetry."""
import logging
from dataclasses import dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class RoundCommittedEvent:
    """round_committed: the commitment is public, the server seed is not."""

    round_id: str
    commit_hash: str
    nonce: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_id": self.round_id,
            "commit_hash": self.commit_hash,
            "nonce": self.nonce,
        }


@dataclass
class RoundCompletedEvent:
    """round_completed event."""

    round_id: str
    drop_column: int
    bin_index: int
    payout_multiplier: float
    bet_cents: int
    win_amount_cents: int
    lock_acquire_ms: float
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_id": self.round_id,
            "drop_column": self.drop_column,
            "bin_index": self.bin_index,
            "payout_multiplier": self.payout_multiplier,
            "bet_cents": self.bet_cents,
            "win_amount_cents": self.win_amount_cents,
            "lock_acquire_ms": self.lock_acquire_ms,
            "config_hash": self.config_hash,
        }


@dataclass
class RoundRevealedEvent:
    """round_revealed event."""

    round_id: str
    revealed_at: str  # ISO 8601

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_id": self.round_id,
            "revealed_at": self.revealed_at,
        }


@dataclass
class RoundRejectedEvent:
    """round_rejected: start or reveal refused."""

    round_id: str
    reason: str  # "ROUND_IN_PROGRESS" | "INVALID_ROUND_STATE" | ...
    lock_acquire_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_id": self.round_id,
            "reason": self.reason,
            "lock_acquire_ms": self.lock_acquire_ms,
        }


@dataclass
class RoundVerifiedEvent:
    """round_verified event from the public verification endpoint."""

    is_verified: bool
    bin_index: int
    drop_column: int
    commit_checked: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_verified": self.is_verified,
            "bin_index": self.bin_index,
            "drop_column": self.drop_column,
            "commit_checked": self.commit_checked,
        }


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit an event; sink failures must not break HTTP requests."""
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_round_committed(self, event: RoundCommittedEvent) -> None:
        self._safe_emit("round_committed", event.to_dict())

    def emit_round_completed(self, event: RoundCompletedEvent) -> None:
        self._safe_emit("round_completed", event.to_dict())

    def emit_round_revealed(self, event: RoundRevealedEvent) -> None:
        self._safe_emit("round_revealed", event.to_dict())

    def emit_round_rejected(self, event: RoundRejectedEvent) -> None:
        self._safe_emit("round_rejected", event.to_dict())

    def emit_round_verified(self, event: RoundVerifiedEvent) -> None:
        self._safe_emit("round_verified", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
