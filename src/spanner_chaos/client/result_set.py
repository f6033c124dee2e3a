"""Client – lazily streamed ResultSet."""
from __future__ import annotations

from types import TracebackType
from typing import Any, Callable, Iterator

import grpc

from spanner_chaos.kernel.errors import DatabaseError
from spanner_chaos.protocol import PartialResultSet, ResultSetMetadata


class ResultSet:
    """Cursor over a streamed query result.

    The streaming call only starts on the first :meth:`next`, so errors of
    the query itself surface while reading, not when the query is issued.
    """

    def __init__(self, start: Callable[[], Iterator[PartialResultSet]]) -> None:
        self._start = start
        self._stream: Iterator[PartialResultSet] | None = None
        self._metadata: ResultSetMetadata | None = None
        self._row: tuple[Any, ...] | None = None
        self._done = False

    @property
    def metadata(self) -> ResultSetMetadata | None:
        return self._metadata

    def next(self) -> bool:
        """Advance to the next row; ``False`` at the end of the results."""
        if self._done:
            return False
        try:
            if self._stream is None:
                self._stream = self._start()
            if self._metadata is None:
                first = next(self._stream)
                self._metadata = first.metadata or ResultSetMetadata()
            part = next(self._stream)
        except StopIteration:
            self._row = None
            self._done = True
            return False
        except grpc.RpcError as exc:
            self._done = True
            raise DatabaseError.from_rpc_error(exc) from exc
        self._row = part.row
        return True

    def _value(self, index: int) -> Any:
        if self._row is None or self._metadata is None:
            raise IndexError("No current row; call next() first")
        return self._metadata.fields[index].decode(self._row[index])

    def get_long(self, index: int) -> int:
        return int(self._value(index))

    def get_string(self, index: int) -> str:
        return str(self._value(index))

    def get_value(self, index: int) -> Any:
        return self._value(index)

    @property
    def current_row(self) -> tuple[Any, ...]:
        if self._row is None:
            raise IndexError("No current row; call next() first")
        return tuple(self._value(i) for i in range(len(self._row)))

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while self.next():
            yield self.current_row

    def close(self) -> None:
        if self._stream is not None and not self._done:
            cancel = getattr(self._stream, "cancel", None)
            if callable(cancel):
                cancel()
        self._done = True

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["ResultSet"]
