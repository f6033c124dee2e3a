"""Protocol – request and response messages.

Messages are frozen dataclasses that convert to and from plain JSON-ready
dicts. Row values follow the wire conventions of the emulated service:
``INT64`` values travel as decimal strings, so ``"1"`` is read back as ``1``
by :meth:`Field.decode`.
"""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Mapping, Sequence


class TypeCode(str, Enum):
    BOOL = "BOOL"
    INT64 = "INT64"
    FLOAT64 = "FLOAT64"
    STRING = "STRING"
    BYTES = "BYTES"
    DATE = "DATE"
    TIMESTAMP = "TIMESTAMP"


def freeze_rows(rows: Sequence[Sequence[Any]]) -> tuple[tuple[Any, ...], ...]:
    return tuple(tuple(row) for row in rows)


@dataclasses.dataclass(frozen=True)
class Field:
    name: str
    type: TypeCode = TypeCode.STRING

    def decode(self, value: Any) -> Any:
        """Convert a wire value to its Python value."""
        if value is None:
            return None
        if self.type is TypeCode.INT64:
            return int(value)
        if self.type is TypeCode.FLOAT64:
            return float(value)
        if self.type is TypeCode.BOOL:
            return bool(value)
        return value

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Field:
        return cls(name=data["name"], type=TypeCode(data.get("type", "STRING")))


@dataclasses.dataclass(frozen=True)
class Statement:
    """A SQL statement with named bound parameters."""

    sql: str
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def of(cls, sql: str, **params: Any) -> Statement:
        return cls(sql=sql, params=dict(params))


@dataclasses.dataclass(frozen=True)
class ExecuteSqlRequest:
    sql: str
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    transaction_id: str | None = None
    seqno: int = 0

    @property
    def statement(self) -> Statement:
        return Statement(self.sql, dict(self.params))

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "params": dict(self.params),
            "transaction_id": self.transaction_id,
            "seqno": self.seqno,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecuteSqlRequest:
        return cls(
            sql=data["sql"],
            params=dict(data.get("params") or {}),
            transaction_id=data.get("transaction_id"),
            seqno=int(data.get("seqno", 0)),
        )


@dataclasses.dataclass(frozen=True)
class ResultSetMetadata:
    fields: tuple[Field, ...] = ()
    transaction_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": [f.to_dict() for f in self.fields],
            "transaction_id": self.transaction_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResultSetMetadata:
        return cls(
            fields=tuple(Field.from_dict(f) for f in data.get("fields", ())),
            transaction_id=data.get("transaction_id"),
        )


@dataclasses.dataclass(frozen=True)
class ResultSet:
    """Response of ``ExecuteSql``: a complete result or a DML update count."""

    metadata: ResultSetMetadata = ResultSetMetadata()
    rows: tuple[tuple[Any, ...], ...] = ()
    update_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "rows": [list(r) for r in self.rows],
            "update_count": self.update_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResultSet:
        return cls(
            metadata=ResultSetMetadata.from_dict(data.get("metadata") or {}),
            rows=freeze_rows(data.get("rows") or ()),
            update_count=data.get("update_count"),
        )


@dataclasses.dataclass(frozen=True)
class PartialResultSet:
    """One message of a streamed result.

    The first message of a stream carries the metadata and no row; every
    following message carries exactly one row.
    """

    metadata: ResultSetMetadata | None = None
    row: tuple[Any, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict() if self.metadata is not None else None,
            "row": list(self.row) if self.row is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PartialResultSet:
        metadata = data.get("metadata")
        row = data.get("row")
        return cls(
            metadata=ResultSetMetadata.from_dict(metadata) if metadata is not None else None,
            row=tuple(row) if row is not None else None,
        )


@dataclasses.dataclass(frozen=True)
class BeginTransactionRequest:
    read_only: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"read_only": self.read_only}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BeginTransactionRequest:
        return cls(read_only=bool(data.get("read_only", False)))


@dataclasses.dataclass(frozen=True)
class Transaction:
    id: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        return cls(id=data["id"])


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    INSERT_OR_UPDATE = "insert_or_update"
    DELETE = "delete"


@dataclasses.dataclass(frozen=True)
class Mutation:
    kind: MutationKind
    table: str
    columns: tuple[str, ...] = ()
    values: tuple[Any, ...] = ()

    @classmethod
    def insert(cls, table: str, **values: Any) -> Mutation:
        return cls(MutationKind.INSERT, table, tuple(values), tuple(values.values()))

    @classmethod
    def update(cls, table: str, **values: Any) -> Mutation:
        return cls(MutationKind.UPDATE, table, tuple(values), tuple(values.values()))

    @classmethod
    def insert_or_update(cls, table: str, **values: Any) -> Mutation:
        return cls(MutationKind.INSERT_OR_UPDATE, table, tuple(values), tuple(values.values()))

    @classmethod
    def delete(cls, table: str, *key: Any) -> Mutation:
        return cls(MutationKind.DELETE, table, (), tuple(key))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "table": self.table,
            "columns": list(self.columns),
            "values": list(self.values),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Mutation:
        return cls(
            kind=MutationKind(data["kind"]),
            table=data["table"],
            columns=tuple(data.get("columns", ())),
            values=tuple(data.get("values", ())),
        )


@dataclasses.dataclass(frozen=True)
class CommitRequest:
    transaction_id: str
    mutations: tuple[Mutation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "mutations": [m.to_dict() for m in self.mutations],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommitRequest:
        return cls(
            transaction_id=data["transaction_id"],
            mutations=tuple(Mutation.from_dict(m) for m in data.get("mutations", ())),
        )


@dataclasses.dataclass(frozen=True)
class CommitResponse:
    commit_timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"commit_timestamp": self.commit_timestamp}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommitResponse:
        return cls(commit_timestamp=data["commit_timestamp"])


@dataclasses.dataclass(frozen=True)
class RollbackRequest:
    transaction_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"transaction_id": self.transaction_id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RollbackRequest:
        return cls(transaction_id=data["transaction_id"])


@dataclasses.dataclass(frozen=True)
class Empty:
    def to_dict(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Empty:  # noqa: ARG003
        return cls()


__all__ = [
    "BeginTransactionRequest",
    "CommitRequest",
    "CommitResponse",
    "Empty",
    "ExecuteSqlRequest",
    "Field",
    "Mutation",
    "MutationKind",
    "PartialResultSet",
    "ResultSet",
    "ResultSetMetadata",
    "RollbackRequest",
    "Statement",
    "Transaction",
    "TypeCode",
    "freeze_rows",
]
