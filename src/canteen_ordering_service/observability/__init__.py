"""Structured logging, OpenTelemetry setup and tracing utilities."""

from canteen_ordering_service.observability.config import configure_logging, setup_observability
from canteen_ordering_service.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
