"""
ticketsync Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for observability
- Webhook traces and sync outcome metrics
"""

from ticketsync.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
]
