"""OpenTelemetry tracing for llmgate (see ``tracing``)."""

from .tracing import DEFAULT_OTLP_ENDPOINT, init_telemetry, shutdown_telemetry

__all__ = [
    "DEFAULT_OTLP_ENDPOINT",
    "init_telemetry",
    "shutdown_telemetry",
]
