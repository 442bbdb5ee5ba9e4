"""Weather forecast demo service instrumented with OpenTelemetry."""

__version__ = "0.1.0"
