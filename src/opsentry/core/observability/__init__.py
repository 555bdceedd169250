"""
Observability services for opsentry.

Provides trace lifecycle management, the Reporter contract, the
``measure`` instrumentation wrapper and the service wiring that ties them
to a MetricsStore.

Example:

    from opsentry.core.observability import ObservabilityManager

    manager = ObservabilityManager.from_config(config)

    @manager.instrumentation.instrumented("list_orders")
    async def list_orders(client):
        response = await client.get("/orders")
        response.raise_for_status()
        return response.json()
"""

from opsentry.core.observability.instrumentation import Instrumentation
from opsentry.core.observability.manager import (
    ObservabilityManager,
    get_observability_status,
)
from opsentry.core.observability.reporter import (
    CallbackReporter,
    LoggingReporter,
    NullReporter,
    Reporter,
    TelemetryPayload,
    safe_report,
)
from opsentry.core.observability.trace import (
    DURATION_METRIC,
    CompletedTrace,
    Trace,
    TraceHandle,
    TraceRegistry,
    TraceStatus,
)

__all__ = [
    # Instrumentation
    "Instrumentation",
    # Wiring
    "ObservabilityManager",
    "get_observability_status",
    # Reporters
    "CallbackReporter",
    "LoggingReporter",
    "NullReporter",
    "Reporter",
    "TelemetryPayload",
    "safe_report",
    # Traces
    "DURATION_METRIC",
    "CompletedTrace",
    "Trace",
    "TraceHandle",
    "TraceRegistry",
    "TraceStatus",
]
