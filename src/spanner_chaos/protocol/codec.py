"""Protocol – JSON wire codec for gRPC generic handlers."""
from __future__ import annotations

import json
from typing import Any, Callable, Protocol, TypeVar

from spanner_chaos.kernel.errors import SerializationError

M = TypeVar("M", bound="WireMessage")


class WireMessage(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


class JsonMessageSerializer:
    """JSON serialiser/deserialiser for protocol messages."""

    def serialize(self, message: WireMessage) -> bytes:
        try:
            return json.dumps(message.to_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode {type(message).__name__}: {exc}",
                payload_type=type(message).__name__,
                cause=exc,
            ) from exc

    def deserialize(self, data: bytes, target_type: type[M]) -> M:
        try:
            return target_type.from_dict(json.loads(data))  # type: ignore[attr-defined]
        except (ValueError, KeyError, TypeError) as exc:
            raise SerializationError(
                f"Cannot decode {target_type.__name__}: {exc}",
                payload_type=target_type.__name__,
                cause=exc,
            ) from exc

    def serializer(self) -> Callable[[WireMessage], bytes]:
        return self.serialize

    def deserializer(self, target_type: type[M]) -> Callable[[bytes], M]:
        def _deserialize(data: bytes) -> M:
            return self.deserialize(data, target_type)

        return _deserialize


default_serializer = JsonMessageSerializer()

__all__ = ["JsonMessageSerializer", "WireMessage", "default_serializer"]
