from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from opentelemetry import propagate
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from otel_example.config import get_settings
from otel_example.main import create_app
from otel_example.observability.telemetry import Telemetry, build_telemetry
from otel_example.services.forecast_service import set_random_source


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_NAME", "forecast-test")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("OTLP_EXPORT_ENABLED", "false")
    monkeypatch.setenv("CONSOLE_EXPORT_ENABLED", "false")
    monkeypatch.setenv("RUNTIME_METRICS_ENABLED", "false")
    monkeypatch.setenv("HTTP_CLIENT_INSTRUMENTATION_ENABLED", "false")
    monkeypatch.setenv("XRAY_PROPAGATION_ENABLED", "true")
    get_settings.cache_clear()
    set_random_source(None)

    yield

    set_random_source(None)
    get_settings.cache_clear()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def make_telemetry(span_exporter: InMemorySpanExporter, metric_reader: InMemoryMetricReader):
    """Build Telemetry wired to the in-memory sinks; shut down after the test.

    The propagator is installed process-wide (the server and client
    instrumentations read it) and the previous one is restored afterwards.
    """

    built: list[Telemetry] = []
    previous_propagator = propagate.get_global_textmap()

    def _make(settings=None) -> Telemetry:
        telemetry = build_telemetry(
            settings or get_settings(),
            span_processors=[SimpleSpanProcessor(span_exporter)],
            metric_readers=[metric_reader],
            install_globals=False,
        )
        telemetry.install_propagator()
        built.append(telemetry)
        return telemetry

    yield _make

    for telemetry in built:
        telemetry.shutdown()
    propagate.set_global_textmap(previous_propagator)


@pytest.fixture
def telemetry(make_telemetry) -> Telemetry:
    return make_telemetry()


@pytest.fixture
def app(telemetry: Telemetry) -> FastAPI:
    return create_app(telemetry=telemetry)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def metric_points(metric_reader: InMemoryMetricReader) -> Callable[[str], list[Any]]:
    """Collect and return every data point exported for a metric name."""

    def _collect(name: str) -> list[Any]:
        points: list[Any] = []
        data = metric_reader.get_metrics_data()
        if data is None:
            return points
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    if metric.name == name:
                        points.extend(metric.data.data_points)
        return points

    return _collect


@pytest.fixture
def metric_names(metric_reader: InMemoryMetricReader) -> Callable[[], set[str]]:
    def _names() -> set[str]:
        data = metric_reader.get_metrics_data()
        if data is None:
            return set()
        return {
            metric.name
            for resource_metrics in data.resource_metrics
            for scope_metrics in resource_metrics.scope_metrics
            for metric in scope_metrics.metrics
        }

    return _names
