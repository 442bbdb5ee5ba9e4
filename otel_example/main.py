from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from otel_example import __version__
from otel_example.api.exception import deliberate_fault_handler
from otel_example.api.exception import router as exception_router
from otel_example.api.forecast import router as forecast_router
from otel_example.api.metrics import router as metrics_router
from otel_example.config import Settings, get_settings
from otel_example.errors import DeliberateFault
from otel_example.observability.logging import configure_logging
from otel_example.observability.metrics import CallCounter
from otel_example.observability.middleware import RequestContextMiddleware
from otel_example.observability.telemetry import Telemetry, build_telemetry


def create_app(settings: Settings | None = None, telemetry: Telemetry | None = None) -> FastAPI:
    """Build the application around an explicit ``Telemetry``.

    Telemetry is created here (before any request is served) unless one is
    passed in, and is shut down when the application stops.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    telemetry = telemetry or build_telemetry(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        telemetry.uninstrument_app(_app)
        telemetry.shutdown()

    docs = settings.docs_enabled
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/swagger" if docs else None,
        openapi_url="/swagger/v1/swagger.json" if docs else None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.call_counter = CallCounter(telemetry.custom_meter)

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(DeliberateFault, deliberate_fault_handler)

    app.include_router(forecast_router)
    app.include_router(exception_router)
    app.include_router(metrics_router)
    telemetry.instrument_app(app)
    return app
