"""Harness errors: misconfiguration and server lifecycle failures."""

from __future__ import annotations

from typing import Any

from spanner_chaos.kernel.errors.base import BaseError


class HarnessError(BaseError):
    """Failure of the harness itself, as opposed to an injected fault."""

    default_code = "harness_error"


class UnregisteredRequestError(HarnessError):
    """A request matched no registry entry and the default policy forbids guessing."""

    default_code = "unregistered_request"

    def __init__(self, key: Any, **kwargs: Any) -> None:
        super().__init__(f"No outcome registered for {key}", **kwargs)
        self.key = key


class SerializationError(HarnessError):
    """Failed to serialize or deserialize a wire message."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class ServerStartError(HarnessError):
    """The mock server could not bind or start."""

    default_code = "server_start_failed"


class ServerTeardownError(HarnessError):
    """The mock server did not terminate within its shutdown timeout."""

    default_code = "server_teardown_failed"

    def __init__(self, address: str, timeout: float, **kwargs: Any) -> None:
        super().__init__(
            f"Mock server at {address} did not stop within {timeout:.1f}s",
            **kwargs,
        )
        self.address = address
        self.timeout = timeout


__all__ = [
    "HarnessError",
    "SerializationError",
    "ServerStartError",
    "ServerTeardownError",
    "UnregisteredRequestError",
]
