from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from otel_example.errors import DeliberateFault
from otel_example.models.schemas import ErrorResponse

router = APIRouter(tags=["exception"])


@router.post(
    "/exception",
    name="ThrowException",
    responses={500: {"model": ErrorResponse, "description": "Always returned; carries the fault id."}},
)
async def throw_exception() -> None:
    raise DeliberateFault(str(uuid.uuid4()))


async def deliberate_fault_handler(request: Request, exc: DeliberateFault) -> JSONResponse:
    _ = request
    # Runs inside the server span opened by the FastAPI instrumentation.
    trace.get_current_span().record_exception(exc)
    structlog.get_logger("api").error("deliberate_fault", fault_id=exc.fault_id)
    return JSONResponse(status_code=500, content=ErrorResponse(error=exc.fault_id).model_dump())
