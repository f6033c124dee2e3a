"""Observability – structlog processors and get_logger helper."""
from __future__ import annotations

from typing import Any

import structlog


class HarnessContextProcessor:
    """structlog processor that tags every event with the emitting component.

    The component is derived from the logger name, e.g.
    ``spanner_chaos.server.service`` becomes ``server``.

    Usage::

        structlog.configure(processors=[HarnessContextProcessor(), ...])
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        name = event_dict.get("logger")
        if isinstance(name, str) and name.startswith("spanner_chaos."):
            event_dict.setdefault("component", name.split(".")[1])
        return event_dict


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["HarnessContextProcessor", "get_logger"]
