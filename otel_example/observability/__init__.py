"""OpenTelemetry wiring for the service.

Telemetry providers and exporters, the ``call.count`` counter, the request
middleware, and structlog output correlated with the active span.
"""

from otel_example.observability.logging import configure_logging
from otel_example.observability.metrics import CallCounter
from otel_example.observability.middleware import RequestContextMiddleware
from otel_example.observability.telemetry import Telemetry, build_telemetry

__all__ = [
    "CallCounter",
    "Telemetry",
    "RequestContextMiddleware",
    "build_telemetry",
    "configure_logging",
]
