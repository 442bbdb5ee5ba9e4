from __future__ import annotations


class OtelExampleError(Exception):
    """Base class for errors raised by this service."""


class DeliberateFault(OtelExampleError):
    """Raised on purpose by ``POST /exception`` to exercise failure-path telemetry.

    The message is a random identifier so the fault can be matched to the
    span that recorded it.
    """

    def __init__(self, fault_id: str) -> None:
        super().__init__(fault_id)
        self.fault_id = fault_id
