"""
OpenTelemetry Exporter for ticketsync

Architectural Intent:
- Exports webhook handling traces and sync outcome metrics to OTLP backends
- One span per inbound webhook, one counter increment per SyncResult
- Disabled (API no-op providers) until an endpoint is configured

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
- Validation in __post_init__ prevents accidental plaintext export
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Iterator, Optional
from urllib.parse import urlparse
import logging

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ticketsync.application.dtos.webhook_dtos import SyncResult

logger = logging.getLogger(__name__)

OUTCOME_METRIC = "ticketsync.sync.outcome"


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "ticketsync"
    environment: str = "production"
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class OTELExporter:
    """
    OpenTelemetry exporter for ticketsync.

    Outcomes are also kept in a local buffer so the web layer and tests can
    inspect recent activity without a collector.
    """

    def __init__(self, config: OTELConfig, buffer_size: int = 100):
        self.config = config
        self._initialized = False
        self._buffer_size = buffer_size
        self._outcomes: list[dict[str, Any]] = []
        self._tracer_provider: Optional[TracerProvider] = None
        self._meter_provider: Optional[MeterProvider] = None
        self._counter: Any = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def recent_outcomes(self) -> list[dict[str, Any]]:
        return list(self._outcomes)

    def initialize(self) -> None:
        """Initialize OpenTelemetry SDK and exporters."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        resource = Resource(
            attributes={
                SERVICE_NAME: self.config.service_name,
                "environment": self.config.environment,
            }
        )

        self._tracer_provider = TracerProvider(resource=resource)
        self._tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=self.config.endpoint, insecure=self.config.insecure)
            )
        )
        trace.set_tracer_provider(self._tracer_provider)

        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=self.config.endpoint, insecure=self.config.insecure)
        )
        self._meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
        metrics.set_meter_provider(self._meter_provider)

        self._counter = metrics.get_meter(__name__).create_counter(
            OUTCOME_METRIC, description="Webhook sync outcomes"
        )
        self._initialized = True
        logger.info("OTEL telemetry exporting to %s", self.config.endpoint)

    def record_outcome(self, direction: str, result: SyncResult) -> None:
        """Record the outcome of one sync (direction: "connectwise" or "pagerduty")."""
        attributes = {"direction": direction, "outcome": result.outcome.value}
        self._outcomes.append(
            {
                **attributes,
                "ticket_id": result.ticket_id,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )
        del self._outcomes[: -self._buffer_size]

        if self._counter is not None:
            self._counter.add(1, attributes=attributes)

    @contextmanager
    def span(self, name: str, attributes: Optional[dict[str, str]] = None) -> Iterator[Any]:
        """Trace a block; a no-op span when telemetry is disabled."""
        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(name, attributes=attributes or {}) as span:
            yield span

    def shutdown(self) -> None:
        """Flush and stop the SDK providers."""
        if self._tracer_provider is not None:
            self._tracer_provider.shutdown()
        if self._meter_provider is not None:
            self._meter_provider.shutdown()
        self._initialized = False
