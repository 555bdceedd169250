"""Reporter contract for completed telemetry records.

A Reporter is an external sink: it receives one event per completed trace
(and per background sample, when the sampler is given a reporter). The
core never depends on what the sink does with it.

DESIGN RULES:
- Fire-and-forget: ``report`` returns nothing and is never retried
- Callers catch and log reporter failures; reporters may still raise
- No wire format is defined here; exporters own serialization
- Delivery is synchronous on the caller's thread (and event loop), so
  ``report`` must not block; hand slow work to a queue or thread
"""

import logging
from typing import Any, Callable, Dict, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class TelemetryPayload(BaseModel):
    """Structured payload delivered to a Reporter."""

    model_config = ConfigDict(frozen=True)

    duration: float = Field(..., description="Duration in milliseconds")
    metrics: Dict[str, float] = Field(default_factory=dict, description="Numeric metrics")
    status: str = Field(..., description="Trace status, 'stopped' for completed traces")
    platform: str = Field(..., description="Platform the measurement was taken on")
    timestamp: float = Field(..., description="Unix epoch seconds at completion")
    attributes: Dict[str, str] = Field(default_factory=dict, description="String attributes")


@runtime_checkable
class Reporter(Protocol):
    """External sink for completed telemetry records.

    ``report`` is called inline from ``TraceRegistry.stop`` and must return
    promptly.
    """

    def report(self, event_name: str, payload: TelemetryPayload) -> None: ...


class NullReporter:
    """Reporter that discards everything."""

    def report(self, event_name: str, payload: TelemetryPayload) -> None:
        pass


class LoggingReporter:
    """Reporter that writes each event to the standard logger.

    Events are logged with the payload attached as structured ``extra`` data
    for log aggregation systems.
    """

    def __init__(self, level: int = logging.INFO, logger_name: str = f"{__name__}.events"):
        self._level = level
        self._logger = logging.getLogger(logger_name)

    def report(self, event_name: str, payload: TelemetryPayload) -> None:
        self._logger.log(
            self._level,
            f"TELEMETRY: {event_name}",
            extra={"telemetry": {"event": event_name, **payload.model_dump()}},
        )


class CallbackReporter:
    """Adapt a plain callable ``(event_name, payload_dict)`` to the Reporter contract."""

    def __init__(self, callback: Callable[[str, Dict[str, Any]], Any]):
        self._callback = callback

    def report(self, event_name: str, payload: TelemetryPayload) -> None:
        self._callback(event_name, payload.model_dump())


def safe_report(reporter: Reporter, event_name: str, payload: TelemetryPayload) -> bool:
    """Deliver to ``reporter``, logging and discarding any failure.

    The call happens on the current thread before this returns.

    Returns:
        True if the reporter accepted the event without raising.
    """
    try:
        reporter.report(event_name, payload)
        return True
    except Exception as e:
        logger.warning(f"Reporter failed for {event_name}: {e}")
        return False
