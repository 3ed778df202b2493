"""Server-side telemetry."""
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
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class SpinProcessedEvent:
    """spin_processed telemetry event."""

    player_id: str
    round_id: str
    mode: str  # "base" | "free_spins" | "buy"
    bet_amount: int
    total_win: int
    tumbles: int
    cascade_capped: bool
    free_spins_awarded: int
    config_hash: str
    lock_acquire_ms: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "player_id": self.player_id,
            "round_id": self.round_id,
            "mode": self.mode,
            "bet_amount": self.bet_amount,
            "total_win": self.total_win,
            "tumbles": self.tumbles,
            "cascade_capped": self.cascade_capped,
            "free_spins_awarded": self.free_spins_awarded,
            "config_hash": self.config_hash,
            "lock_acquire_ms": self.lock_acquire_ms,
        }


@dataclass
class SpinRejectedEvent:
    """spin_rejected telemetry event."""

    player_id: str
    reason: str  # "ROUND_IN_PROGRESS" | "INVALID_BET" | ...
    lock_acquire_ms: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "player_id": self.player_id,
            "reason": self.reason,
            "lock_acquire_ms": self.lock_acquire_ms,
        }


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures
        self.cascade_cap_hits = 0

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break HTTP requests.
        """
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

    def emit_spin_processed(self, event: SpinProcessedEvent) -> None:
        """Emit spin_processed event, counting cascade cap hits."""
        if event.cascade_capped:
            self.cascade_cap_hits += 1
        self._safe_emit("spin_processed", event.to_dict())

    def emit_spin_rejected(self, event: SpinRejectedEvent) -> None:
        """Emit spin_rejected event."""
        self._safe_emit("spin_rejected", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
