from __future__ import annotations

from opentelemetry.metrics import Meter


CALL_COUNT_NAME = "call.count"


class CallCounter:
    """Process-lifetime ``call.count`` counter on the custom meter.

    The SDK aggregates ``add`` calls under its own lock, so concurrent
    increments are never lost. The value is only observable through the
    export pipeline.
    """

    def __init__(self, meter: Meter) -> None:
        self._counter = meter.create_counter(
            CALL_COUNT_NAME,
            unit="{call}",
            description="Number of calls to the /metrics endpoint.",
        )

    def increment(self) -> None:
        self._counter.add(1)
