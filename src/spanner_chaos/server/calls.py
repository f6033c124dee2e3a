"""Server – CallRecord."""
from __future__ import annotations

import threading
from collections import Counter, defaultdict
from typing import Any

from spanner_chaos.protocol.methods import Operation, normalize_method


def _method_name(method: Operation | str) -> str:
    if isinstance(method, Operation):
        return method.method
    return normalize_method(method)


class CallRecord:
    """Per-method invocation counters and received requests.

    Counts only ever grow; a fresh record comes with a fresh service.

    Usage::

        service.calls.count(Operation.COMMIT)
        service.calls.requests(Operation.EXECUTE_STREAMING_SQL)[-1].sql
    """

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._requests: defaultdict[str, list[Any]] = defaultdict(list)
        self._lock = threading.Lock()

    def record(self, method: Operation | str, request: Any = None) -> int:
        name = _method_name(method)
        with self._lock:
            self._counts[name] += 1
            if request is not None:
                self._requests[name].append(request)
            return self._counts[name]

    def count(self, method: Operation | str) -> int:
        with self._lock:
            return self._counts[_method_name(method)]

    def requests(self, method: Operation | str) -> list[Any]:
        with self._lock:
            return list(self._requests[_method_name(method)])

    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


__all__ = ["CallRecord"]
