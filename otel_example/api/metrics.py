from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from otel_example.observability.metrics import CallCounter

router = APIRouter(tags=["metrics"])


def get_call_counter(request: Request) -> CallCounter:
    return request.app.state.call_counter


@router.get("/metrics", response_class=PlainTextResponse, name="IncrementCallCount")
def increment_call_count(counter: CallCounter = Depends(get_call_counter)) -> str:
    counter.increment()
    return "Hello World!"
