"""Interceptors – FaultInjectionInterceptor and the synthesised failed call.

A forced failure never reaches the transport. The interceptor returns an
:class:`InjectedFailure`, a terminal call that is at once a
:class:`grpc.RpcError`, a :class:`grpc.Call` and a :class:`grpc.Future`:
unary callers see it raised from ``result()``, streaming callers see it
raised from the first ``next()``. Either way ``code()`` and ``details()``
carry the injected status.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Sequence

import grpc

from spanner_chaos.interceptors.actions import Delay, ForcedFailure, InterceptPolicy
from spanner_chaos.observability.logging import get_logger
from spanner_chaos.protocol.methods import normalize_method

logger = get_logger(__name__)


class InjectedFailure(grpc.RpcError, grpc.Call, grpc.Future):  # type: ignore[misc]
    def __init__(self, code: grpc.StatusCode, details: str) -> None:
        super().__init__(f"{code.name}: {details}")
        self._code = code
        self._details = details

    # grpc.Call
    def initial_metadata(self) -> None:
        return None

    def trailing_metadata(self) -> None:
        return None

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._details

    # grpc.RpcContext
    def is_active(self) -> bool:
        return False

    def time_remaining(self) -> None:
        return None

    def cancel(self) -> bool:
        return False

    def add_callback(self, callback: Callable[[], None]) -> bool:
        return False

    # grpc.Future
    def cancelled(self) -> bool:
        return False

    def running(self) -> bool:
        return False

    def done(self) -> bool:
        return True

    def result(self, timeout: float | None = None) -> Any:
        raise self

    def exception(self, timeout: float | None = None) -> InjectedFailure:
        return self

    def traceback(self, timeout: float | None = None) -> None:
        return None

    def add_done_callback(self, fn: Callable[[Any], None]) -> None:
        fn(self)

    # response iterator
    def __iter__(self) -> InjectedFailure:
        return self

    def __next__(self) -> Any:
        raise self

    def __repr__(self) -> str:
        return f"InjectedFailure(code={self._code.name}, details={self._details!r})"


class FaultInjectionInterceptor(
    grpc.UnaryUnaryClientInterceptor,
    grpc.UnaryStreamClientInterceptor,
):
    """Client interceptor evaluating policies in order.

    Delays accumulate; the first forced failure short-circuits the call and
    the policies after it are not consulted.
    """

    def __init__(
        self,
        policies: Sequence[InterceptPolicy],
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._policies = tuple(policies)
        self._sleep = sleep

    @property
    def policies(self) -> tuple[InterceptPolicy, ...]:
        return self._policies

    def evaluate(self, method: str) -> tuple[float, ForcedFailure | None]:
        delay = 0.0
        for policy in self._policies:
            action = policy(method)
            if isinstance(action, ForcedFailure):
                return delay, action
            if isinstance(action, Delay):
                delay += action.seconds
        return delay, None

    def _intercept(self, continuation: Any, client_call_details: Any, request: Any) -> Any:
        method = normalize_method(client_call_details.method)
        delay, failure = self.evaluate(method)
        if delay > 0:
            logger.debug("fault.delayed", method=method, seconds=round(delay, 4))
            self._sleep(delay)
        if failure is not None:
            logger.info("fault.injected", method=method, code=failure.code.name)
            return InjectedFailure(failure.code, failure.description)
        return continuation(client_call_details, request)

    def intercept_unary_unary(self, continuation: Any, client_call_details: Any, request: Any) -> Any:
        return self._intercept(continuation, client_call_details, request)

    def intercept_unary_stream(self, continuation: Any, client_call_details: Any, request: Any) -> Any:
        return self._intercept(continuation, client_call_details, request)


__all__ = ["FaultInjectionInterceptor", "InjectedFailure"]
