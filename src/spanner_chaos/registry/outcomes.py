"""Registry – programmed outcomes.

An outcome is one of :class:`QueryResult`, :class:`UpdateCount`,
:class:`ErrorOutcome` or :class:`Recovered`, optionally wrapped in an
:class:`ExecutionTime` that adds a server-side delay. All outcomes are frozen
and hold only tuples, so the same instance can be handed to any number of
concurrent calls.
"""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Sequence, Union

import grpc

from spanner_chaos.protocol.messages import Field, TypeCode, freeze_rows


def _as_field(column: Field | str | tuple[str, TypeCode | str]) -> Field:
    if isinstance(column, Field):
        return column
    if isinstance(column, str):
        return Field(column)
    name, type_code = column
    return Field(name, TypeCode(type_code))


@dataclasses.dataclass(frozen=True)
class QueryResult:
    """Rows and schema returned for a query, in registration order."""

    fields: tuple[Field, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(_as_field(c) for c in self.fields))
        object.__setattr__(self, "rows", freeze_rows(self.rows))
        width = len(self.fields)
        for row in self.rows:
            if len(row) != width:
                raise ValueError(f"Row {row!r} does not match {width} columns")

    @classmethod
    def of(
        cls,
        columns: Sequence[Field | str | tuple[str, TypeCode | str]],
        rows: Sequence[Sequence[Any]] = (),
    ) -> QueryResult:
        return cls(fields=tuple(columns), rows=tuple(rows))  # type: ignore[arg-type]

    @classmethod
    def empty(cls) -> QueryResult:
        return cls()


@dataclasses.dataclass(frozen=True)
class UpdateCount:
    """Result of a DML statement."""

    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("count must be >= 0")


@dataclasses.dataclass(frozen=True)
class ErrorOutcome:
    """An RPC status to deliver instead of a result.

    ``sticky`` errors fire on every matching call until the entry is cleared
    or replaced; other errors fire exactly once. ``stream_index`` only applies
    to streaming calls: ``None`` fails before anything is sent, ``n`` sends the
    metadata and ``n`` rows first.
    """

    code: grpc.StatusCode
    message: str = ""
    sticky: bool = False
    stream_index: int | None = None

    def __post_init__(self) -> None:
        if self.code is grpc.StatusCode.OK:
            raise ValueError("an error outcome cannot carry StatusCode.OK")
        if self.stream_index is not None and self.stream_index < 0:
            raise ValueError("stream_index must be >= 0")

    @property
    def description(self) -> str:
        return self.message or self.code.name


@dataclasses.dataclass(frozen=True)
class Recovered:
    """Default success after a one-shot error has fired.

    Statements answer with an empty result; operations run normally.
    """


RECOVERED = Recovered()

LeafOutcome = Union[QueryResult, UpdateCount, ErrorOutcome, Recovered]


@dataclasses.dataclass(frozen=True)
class ExecutionTime:
    """Delay of ``minimum + uniform(0, random)`` seconds, then ``then``.

    ``then=None`` means the delay applies and the call otherwise proceeds as
    if nothing were programmed.
    """

    minimum: float = 0.0
    random: float = 0.0
    then: LeafOutcome | None = None

    def __post_init__(self) -> None:
        if self.minimum < 0 or self.random < 0:
            raise ValueError("execution times must be >= 0")
        if isinstance(self.then, ExecutionTime):
            raise ValueError("execution times cannot be nested")

    @classmethod
    def none(cls) -> ExecutionTime:
        return cls()

    @classmethod
    def of_minimum_and_random_time(cls, minimum_ms: float, random_ms: float = 0.0) -> ExecutionTime:
        return cls(minimum=minimum_ms / 1000, random=random_ms / 1000)

    @classmethod
    def of_exception(cls, code: grpc.StatusCode, message: str = "") -> ExecutionTime:
        return cls(then=ErrorOutcome(code, message))

    @classmethod
    def of_sticky_exception(cls, code: grpc.StatusCode, message: str = "") -> ExecutionTime:
        return cls(then=ErrorOutcome(code, message, sticky=True))

    @classmethod
    def of_stream_exception(
        cls, code: grpc.StatusCode, message: str = "", stream_index: int = 0
    ) -> ExecutionTime:
        return cls(then=ErrorOutcome(code, message, stream_index=stream_index))

    def wrapping(self, outcome: ProgrammedOutcome | None) -> ExecutionTime:
        """This delay applied in front of ``outcome``; delays add up."""
        if isinstance(outcome, ExecutionTime):
            return ExecutionTime(
                minimum=self.minimum + outcome.minimum,
                random=self.random + outcome.random,
                then=outcome.then,
            )
        return ExecutionTime(minimum=self.minimum, random=self.random, then=outcome)


ProgrammedOutcome = Union[LeafOutcome, ExecutionTime]


class DefaultOutcome(str, Enum):
    """What a statement with no registry entry receives."""

    UNIMPLEMENTED = "unimplemented"
    EMPTY_RESULT = "empty_result"


def unwrap(outcome: ProgrammedOutcome | None) -> tuple[ExecutionTime | None, LeafOutcome | None]:
    """Split an outcome into its timing wrapper and its leaf outcome."""
    if isinstance(outcome, ExecutionTime):
        return outcome, outcome.then
    return None, outcome


def is_one_shot(outcome: ProgrammedOutcome | None) -> bool:
    _, leaf = unwrap(outcome)
    return isinstance(leaf, ErrorOutcome) and not leaf.sticky


__all__ = [
    "DefaultOutcome",
    "ErrorOutcome",
    "ExecutionTime",
    "LeafOutcome",
    "ProgrammedOutcome",
    "QueryResult",
    "RECOVERED",
    "Recovered",
    "UpdateCount",
    "is_one_shot",
    "unwrap",
]
