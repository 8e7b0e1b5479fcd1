"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from sqlgate.shared.telemetry.logging import get_logger, setup_logging
from sqlgate.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from sqlgate.shared.telemetry.tracing import (
    add_span_attributes,
    set_span_error,
    traced,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_attributes",
    "set_span_error",
]
