"""Database errors: the client-observed error taxonomy.

Every RPC status surfaces as a :class:`DatabaseError` whose ``error_code``
names the same status, so an injected ``PERMISSION_DENIED`` is observed as
``ErrorCode.PERMISSION_DENIED``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import grpc

from spanner_chaos.kernel.errors.base import BaseError


class ErrorCode(str, Enum):
    """Error codes mirroring :class:`grpc.StatusCode` one to one."""

    OK = "OK"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    ABORTED = "ABORTED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"
    DATA_LOSS = "DATA_LOSS"
    UNAUTHENTICATED = "UNAUTHENTICATED"

    @classmethod
    def from_status(cls, status: grpc.StatusCode) -> ErrorCode:
        return cls[status.name]

    def to_status(self) -> grpc.StatusCode:
        return grpc.StatusCode[self.name]


class DatabaseError(BaseError):
    """An RPC failed; carries the status as an :class:`ErrorCode`."""

    default_code = "database_error"

    def __init__(
        self,
        error_code: ErrorCode,
        message: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message or error_code.value, **kwargs)
        self.error_code = error_code

    @property
    def is_retryable(self) -> bool:
        """Only aborted transactions are retried by the transaction runner."""
        return self.error_code is ErrorCode.ABORTED

    @classmethod
    def from_rpc_error(cls, error: grpc.RpcError) -> DatabaseError:
        code_fn = getattr(error, "code", None)
        details_fn = getattr(error, "details", None)
        status = code_fn() if callable(code_fn) else grpc.StatusCode.UNKNOWN
        details = (details_fn() if callable(details_fn) else None) or ""
        return cls(
            ErrorCode.from_status(status or grpc.StatusCode.UNKNOWN),
            details,
            cause=error,
        )

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["error_code"] = self.error_code.value
        return base


__all__ = ["DatabaseError", "ErrorCode"]
