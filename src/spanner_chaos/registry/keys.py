"""Registry – request keys.

A :class:`StatementKey` matches a statement exactly: same SQL text and the
same bound parameters with the same value types (``True`` does not match
``1``). An :class:`OperationKey` matches every call of one RPC kind.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Mapping, Union

from spanner_chaos.protocol.messages import ExecuteSqlRequest, Statement
from spanner_chaos.protocol.methods import Operation

FrozenParams = tuple[tuple[str, str, Any], ...]


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _type_tag(value: Any) -> str:
    # Arrays arrive as JSON lists whatever sequence type was registered.
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def freeze_params(params: Mapping[str, Any] | None) -> FrozenParams:
    if not params:
        return ()
    return tuple(
        sorted((name, _type_tag(value), _freeze(value)) for name, value in params.items())
    )


@dataclasses.dataclass(frozen=True)
class StatementKey:
    sql: str
    params: FrozenParams = ()

    @classmethod
    def of(cls, sql: str, params: Mapping[str, Any] | None = None) -> StatementKey:
        return cls(sql=sql, params=freeze_params(params))

    @classmethod
    def from_statement(cls, statement: Statement) -> StatementKey:
        return cls.of(statement.sql, statement.params)

    @classmethod
    def from_request(cls, request: ExecuteSqlRequest) -> StatementKey:
        return cls.of(request.sql, request.params)

    def __str__(self) -> str:
        if not self.params:
            return f"statement {self.sql!r}"
        bound = ", ".join(f"{name}={value!r}" for name, _, value in self.params)
        return f"statement {self.sql!r} with {bound}"


@dataclasses.dataclass(frozen=True)
class OperationKey:
    operation: Operation

    def __str__(self) -> str:
        return f"operation {self.operation.value}"


RequestKey = Union[StatementKey, OperationKey]

__all__ = ["FrozenParams", "OperationKey", "RequestKey", "StatementKey", "freeze_params"]
