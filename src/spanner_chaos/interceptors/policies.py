"""Interceptors – policies deciding the fate of a call from its method name.

Every policy matches on the full method name string, e.g.
``/google.spanner.v1.Spanner/ExecuteStreamingSql``. ``methods=None`` matches
every method.
"""
from __future__ import annotations

import random
import threading
from collections import Counter
from typing import Iterable

import grpc

from spanner_chaos.interceptors.actions import (
    INJECTED_DESCRIPTION,
    PASSTHROUGH,
    Action,
    Delay,
    ForcedFailure,
)
from spanner_chaos.protocol.methods import Operation, normalize_method


def _method_set(methods: Iterable[Operation | str] | None) -> frozenset[str] | None:
    if methods is None:
        return None
    return frozenset(
        m.method if isinstance(m, Operation) else normalize_method(m) for m in methods
    )


class _MethodPolicy:
    def __init__(self, methods: Iterable[Operation | str] | None) -> None:
        self._methods = _method_set(methods)

    def matches(self, method: str) -> bool:
        return self._methods is None or method in self._methods


class FailMethods(_MethodPolicy):
    """Always fail the given methods."""

    def __init__(
        self,
        methods: Iterable[Operation | str] | None,
        code: grpc.StatusCode,
        description: str = INJECTED_DESCRIPTION,
    ) -> None:
        super().__init__(methods)
        self._failure = ForcedFailure(code, description)

    def __call__(self, method: str) -> Action:
        return self._failure if self.matches(method) else PASSTHROUGH


class RandomFailure(_MethodPolicy):
    """Fail the given methods with probability ``failure_rate``."""

    def __init__(
        self,
        methods: Iterable[Operation | str] | None,
        code: grpc.StatusCode,
        failure_rate: float = 0.5,
        rng: random.Random | None = None,
        description: str = INJECTED_DESCRIPTION,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0.0 and 1.0")
        super().__init__(methods)
        self._rate = failure_rate
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._failure = ForcedFailure(code, description)

    def __call__(self, method: str) -> Action:
        if not self.matches(method):
            return PASSTHROUGH
        with self._lock:
            roll = self._rng.random()
        return self._failure if roll < self._rate else PASSTHROUGH


class FailFirst(_MethodPolicy):
    """Fail the first ``times`` matching calls, then pass everything through."""

    def __init__(
        self,
        methods: Iterable[Operation | str] | None,
        code: grpc.StatusCode,
        times: int = 1,
        description: str = INJECTED_DESCRIPTION,
    ) -> None:
        if times < 0:
            raise ValueError("times must be >= 0")
        super().__init__(methods)
        self._remaining = times
        self._lock = threading.Lock()
        self._failure = ForcedFailure(code, description)

    def __call__(self, method: str) -> Action:
        if not self.matches(method):
            return PASSTHROUGH
        with self._lock:
            if self._remaining == 0:
                return PASSTHROUGH
            self._remaining -= 1
        return self._failure


class DelayMethods(_MethodPolicy):
    """Hold matching calls for a random delay in ``[min_ms, max_ms]``."""

    def __init__(
        self,
        methods: Iterable[Operation | str] | None,
        min_ms: float = 50.0,
        max_ms: float = 500.0,
        rng: random.Random | None = None,
    ) -> None:
        if min_ms < 0 or max_ms < min_ms:
            raise ValueError("expected 0 <= min_ms <= max_ms")
        super().__init__(methods)
        self._min = min_ms / 1000
        self._max = max_ms / 1000
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def __call__(self, method: str) -> Action:
        if not self.matches(method):
            return PASSTHROUGH
        with self._lock:
            return Delay(self._rng.uniform(self._min, self._max))


class CallCounter:
    """Pass-through policy that counts calls per method."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def __call__(self, method: str) -> Action:
        with self._lock:
            self._counts[method] += 1
        return PASSTHROUGH

    def count(self, method: Operation | str) -> int:
        name = method.method if isinstance(method, Operation) else normalize_method(method)
        with self._lock:
            return self._counts[name]

    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())


__all__ = ["CallCounter", "DelayMethods", "FailFirst", "FailMethods", "RandomFailure"]
