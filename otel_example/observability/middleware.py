from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders


class RequestContextMiddleware:
    """Adds request_id context and access logs.

    Runs inside the OpenTelemetry server span, so access log lines carry
    the request's trace_id/span_id.
    """

    def __init__(self, app: Callable[..., Any]) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=scope.get("path"),
            method=scope.get("method"),
        )

        start = perf_counter()
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            structlog.get_logger("access").exception("http_request_failed", error_type=type(exc).__name__)
            raise
        finally:
            structlog.get_logger("access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round((perf_counter() - start) * 1000.0, 2),
            )
            structlog.contextvars.clear_contextvars()
