"""Telemetry bootstrap.

Builds one explicit ``Telemetry`` object per process: resource, tracer,
meter and logger providers, exporters and the trace-context propagator.
The application holds it on ``app.state`` and shuts it down on stop.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from threading import Lock

import structlog
from fastapi import FastAPI
from opentelemetry import _logs, metrics, propagate, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.system_metrics import SystemMetricsInstrumentor
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk.extension.aws.trace import AwsXRayIdGenerator
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import (
    SERVICE_INSTANCE_ID,
    SERVICE_NAME,
    SERVICE_NAMESPACE,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from otel_example import __version__
from otel_example.config import SERVICE_NAMESPACE as NAMESPACE
from otel_example.config import Settings


def build_resource(app_name: str) -> Resource:
    if not app_name:
        raise ValueError("app_name must not be empty")
    return Resource.create(
        {
            SERVICE_NAME: app_name,
            SERVICE_NAMESPACE: NAMESPACE,
            SERVICE_VERSION: __version__,
            SERVICE_INSTANCE_ID: str(uuid.uuid4()),
        }
    )


def build_propagator(xray: bool) -> TextMapPropagator:
    if xray:
        return AwsXRayPropagator()
    return CompositePropagator([TraceContextTextMapPropagator(), W3CBaggagePropagator()])


def _default_span_processors(settings: Settings) -> list[SpanProcessor]:
    processors: list[SpanProcessor] = []
    if settings.otlp_export_enabled:
        if settings.otlp_endpoint:
            exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)
        else:
            exporter = OTLPSpanExporter()
        processors.append(BatchSpanProcessor(exporter))
    if settings.console_export_enabled:
        processors.append(BatchSpanProcessor(ConsoleSpanExporter()))
    return processors


def _default_metric_readers(settings: Settings) -> list[MetricReader]:
    interval = settings.metric_export_interval_ms
    readers: list[MetricReader] = []
    if settings.otlp_export_enabled:
        if settings.otlp_endpoint:
            exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        else:
            exporter = OTLPMetricExporter()
        readers.append(PeriodicExportingMetricReader(exporter, export_interval_millis=interval))
    if settings.console_export_enabled:
        readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter(), export_interval_millis=interval))
    return readers


class Telemetry:
    """Owns the providers for one process lifetime."""

    def __init__(
        self,
        *,
        resource: Resource,
        tracer_provider: TracerProvider,
        meter_provider: MeterProvider,
        logger_provider: LoggerProvider,
        propagator: TextMapPropagator,
        custom_meter_name: str,
    ) -> None:
        self.resource = resource
        self.tracer_provider = tracer_provider
        self.meter_provider = meter_provider
        self.logger_provider = logger_provider
        self.propagator = propagator
        self.custom_meter_name = custom_meter_name

        self._lock = Lock()
        self._shutdown = False
        self._http_client_instrumented = False
        self._runtime_metrics_instrumented = False

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def tracer(self, name: str) -> trace.Tracer:
        return self.tracer_provider.get_tracer(name, __version__)

    def meter(self, name: str) -> metrics.Meter:
        return self.meter_provider.get_meter(name, __version__)

    @property
    def custom_meter(self) -> metrics.Meter:
        return self.meter(self.custom_meter_name)

    def instrument_app(self, app: FastAPI) -> None:
        """Server span and HTTP server metrics for every request to ``app``."""

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=self.tracer_provider,
            meter_provider=self.meter_provider,
            exclude_spans=["receive", "send"],
        )

    def uninstrument_app(self, app: FastAPI) -> None:
        FastAPIInstrumentor.uninstrument_app(app)

    def instrument_http_client(self) -> None:
        """Trace and meter outbound ``httpx`` requests through our providers."""

        HTTPXClientInstrumentor().instrument(
            tracer_provider=self.tracer_provider,
            meter_provider=self.meter_provider,
        )
        self._http_client_instrumented = True

    def instrument_runtime_metrics(self) -> None:
        SystemMetricsInstrumentor().instrument(meter_provider=self.meter_provider)
        self._runtime_metrics_instrumented = True

    def install_propagator(self) -> None:
        propagate.set_global_textmap(self.propagator)

    def install_globals(self) -> None:
        """Register providers and the propagator as process-wide defaults.

        The FastAPI and httpx instrumentations extract and inject through the
        global propagator, so it must point at ours.
        """

        self.install_propagator()
        trace.set_tracer_provider(self.tracer_provider)
        metrics.set_meter_provider(self.meter_provider)
        _logs.set_logger_provider(self.logger_provider)

    def force_flush(self, timeout_millis: int = 30_000) -> None:
        self.tracer_provider.force_flush(timeout_millis)
        self.meter_provider.force_flush(timeout_millis)
        self.logger_provider.force_flush(timeout_millis)

    def shutdown(self) -> None:
        """Flush pending data and stop exporters. Safe to call more than once."""

        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True

        if self._http_client_instrumented:
            HTTPXClientInstrumentor().uninstrument()
            self._http_client_instrumented = False
        if self._runtime_metrics_instrumented:
            SystemMetricsInstrumentor().uninstrument()
            self._runtime_metrics_instrumented = False

        self.force_flush()
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()
        self.logger_provider.shutdown()

        structlog.get_logger("telemetry").info("telemetry_shutdown")


def build_telemetry(
    settings: Settings,
    *,
    span_processors: Sequence[SpanProcessor] | None = None,
    metric_readers: Sequence[MetricReader] | None = None,
    install_globals: bool = True,
) -> Telemetry:
    """Configure tracing, metrics and logging pipelines for ``settings.app_name``.

    ``span_processors`` and ``metric_readers`` replace the OTLP + console
    exporters built from settings (tests pass in-memory ones).
    """

    resource = build_resource(settings.app_name)

    tracer_kwargs: dict = {"resource": resource}
    if settings.xray_propagation_enabled:
        # X-Ray only accepts trace ids whose first 32 bits are the epoch seconds.
        tracer_kwargs["id_generator"] = AwsXRayIdGenerator()
    tracer_provider = TracerProvider(**tracer_kwargs)
    for processor in span_processors if span_processors is not None else _default_span_processors(settings):
        tracer_provider.add_span_processor(processor)

    readers = list(metric_readers) if metric_readers is not None else _default_metric_readers(settings)
    meter_provider = MeterProvider(resource=resource, metric_readers=readers)

    # Log pipeline is registered with the resource but has no processors yet.
    logger_provider = LoggerProvider(resource=resource)

    telemetry = Telemetry(
        resource=resource,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        logger_provider=logger_provider,
        propagator=build_propagator(settings.xray_propagation_enabled),
        custom_meter_name=settings.custom_meter_name,
    )

    if install_globals:
        telemetry.install_globals()
    if settings.http_client_instrumentation_enabled:
        telemetry.instrument_http_client()
    if settings.runtime_metrics_enabled:
        telemetry.instrument_runtime_metrics()

    structlog.get_logger("telemetry").info(
        "telemetry_configured",
        service_name=settings.app_name,
        service_namespace=NAMESPACE,
        otlp_export=settings.otlp_export_enabled,
        console_export=settings.console_export_enabled,
        xray_propagation=settings.xray_propagation_enabled,
        runtime_metrics=settings.runtime_metrics_enabled,
        custom_meter=settings.custom_meter_name,
    )
    return telemetry
