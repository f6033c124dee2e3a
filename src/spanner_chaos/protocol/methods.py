"""Protocol – canonical method identities of the emulated service.

Methods are identified by their full method name string. Multi-callables and
handler objects are never compared by reference.
"""
from __future__ import annotations

from enum import Enum

SERVICE_NAME = "google.spanner.v1.Spanner"


def full_method_name(method: str) -> str:
    return f"/{SERVICE_NAME}/{method}"


class Operation(str, Enum):
    """RPC kinds served by the mock service."""

    EXECUTE_STREAMING_SQL = "ExecuteStreamingSql"
    EXECUTE_SQL = "ExecuteSql"
    BEGIN_TRANSACTION = "BeginTransaction"
    COMMIT = "Commit"
    ROLLBACK = "Rollback"

    @property
    def method(self) -> str:
        """The full method name, e.g. ``/google.spanner.v1.Spanner/Commit``."""
        return full_method_name(self.value)

    @property
    def is_transactional(self) -> bool:
        return self in TRANSACTIONAL_OPERATIONS

    @property
    def is_streaming(self) -> bool:
        return self is Operation.EXECUTE_STREAMING_SQL

    @classmethod
    def from_method(cls, method: str | bytes) -> Operation | None:
        """Resolve a full method name; ``None`` for methods outside the service."""
        name = normalize_method(method)
        for op in cls:
            if op.method == name:
                return op
        return None


TRANSACTIONAL_OPERATIONS = frozenset(
    {Operation.EXECUTE_STREAMING_SQL, Operation.EXECUTE_SQL, Operation.COMMIT}
)

EXECUTE_STREAMING_SQL = Operation.EXECUTE_STREAMING_SQL.method
EXECUTE_SQL = Operation.EXECUTE_SQL.method
BEGIN_TRANSACTION = Operation.BEGIN_TRANSACTION.method
COMMIT = Operation.COMMIT.method
ROLLBACK = Operation.ROLLBACK.method


def normalize_method(method: str | bytes) -> str:
    """Some grpc versions hand interceptors the method name as bytes."""
    if isinstance(method, bytes):
        return method.decode("utf-8")
    return method


__all__ = [
    "BEGIN_TRANSACTION",
    "COMMIT",
    "EXECUTE_SQL",
    "EXECUTE_STREAMING_SQL",
    "Operation",
    "ROLLBACK",
    "SERVICE_NAME",
    "TRANSACTIONAL_OPERATIONS",
    "full_method_name",
    "normalize_method",
]
