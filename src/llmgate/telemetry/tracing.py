"""Tracing setup for llmgate.

Resolution, discovery and stream spans go through the global OpenTelemetry
tracer provider. They are no-ops until ``init_telemetry`` installs a provider
that exports over OTLP.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .. import __version__
from ..config import TelemetrySettings

DEFAULT_OTLP_ENDPOINT = "http://localhost:4317"

_provider: Optional[TracerProvider] = None


def init_telemetry(settings: TelemetrySettings) -> bool:
    """Install an OTLP-exporting tracer provider from the ``[telemetry]`` table.

    The endpoint falls back to ``OTEL_EXPORTER_OTLP_ENDPOINT`` and then to a
    local collector. Calling again while a provider is installed does nothing.

    Args:
        settings: Telemetry settings of the gateway config

    Returns:
        True if this call installed the provider
    """
    global _provider
    if not settings.enabled or _provider is not None:
        return False

    endpoint = settings.otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.service_name, "service.version": __version__}
        )
    )
    exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
    # One chat is short-lived; flush every second so its spans are not lost
    provider.add_span_processor(BatchSpanProcessor(exporter, schedule_delay_millis=1000))
    trace.set_tracer_provider(provider)

    _provider = provider
    logging.info(
        "[llmgate.tracing] exporting spans: service=%s, endpoint=%s", settings.service_name, endpoint
    )
    return True


def shutdown_telemetry() -> None:
    """Flush pending spans and release the provider installed by ``init_telemetry``."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    logging.info("[llmgate.tracing] span export stopped")


__all__ = ["init_telemetry", "shutdown_telemetry", "DEFAULT_OTLP_ENDPOINT"]
