"""Observability – structured logging helpers."""
from spanner_chaos.observability.logging.factory import configure_logging
from spanner_chaos.observability.logging.processors import HarnessContextProcessor, get_logger

__all__ = ["HarnessContextProcessor", "configure_logging", "get_logger"]
