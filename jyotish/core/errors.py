# jyotish/core/errors.py
# -----------------------------------------------------------------------------
# Engine error taxonomy
#
# Every user-facing failure names the subsystem that raised it so callers can
# decide between a partial chart (positions without dasha) and a rejection.
#
#   InvalidTimeInput        time       surfaced (HTTP 422)
#   EphemerisUnavailable    ephemeris  recovered by the analytic fallback
#   GeometryDegenerate      houses     surfaced (HTTP 422)
#   InvalidNakshatraIndex   dasha      ladder omitted, rest of chart returned
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Dict

__all__ = [
    "EngineError",
    "InvalidTimeInput",
    "EphemerisUnavailable",
    "GeometryDegenerate",
    "InvalidNakshatraIndex",
]


class EngineError(RuntimeError):
    """Categorized error for engine callers."""

    subsystem = "engine"

    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{self.subsystem}:{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "error": type(self).__name__,
            "subsystem": self.subsystem,
            "stage": self.stage,
            "message": self.message,
        }
        if self.context:
            out["context"] = {k: (v if isinstance(v, (int, float, str, bool)) or v is None else repr(v))
                              for k, v in self.context.items()}
        return out


class InvalidTimeInput(EngineError):
    subsystem = "time"


class EphemerisUnavailable(EngineError):
    subsystem = "ephemeris"


class GeometryDegenerate(EngineError):
    subsystem = "houses"


class InvalidNakshatraIndex(EngineError):
    subsystem = "dasha"
