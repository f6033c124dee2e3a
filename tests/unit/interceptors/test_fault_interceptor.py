"""Unit tests for interceptor policies, the fault-injection interceptor and the chain."""

from __future__ import annotations

import random
from collections import namedtuple
from typing import Any

import grpc
import pytest

from spanner_chaos.interceptors import (
    INJECTED_DESCRIPTION,
    PASSTHROUGH,
    CallCounter,
    Delay,
    DelayMethods,
    FailFirst,
    FailMethods,
    FaultInjectionInterceptor,
    ForcedFailure,
    InjectedFailure,
    InterceptorChain,
    RandomFailure,
)
from spanner_chaos.protocol import COMMIT, EXECUTE_STREAMING_SQL, Operation

_CallDetails = namedtuple("_CallDetails", ["method", "timeout", "metadata", "credentials"])


def _details(method: str | bytes) -> _CallDetails:
    return _CallDetails(method, None, None, None)


class _Continuation:
    def __init__(self) -> None:
        self.calls: list[Any] = []

    def __call__(self, details: Any, request: Any) -> str:
        self.calls.append((details, request))
        return "forwarded"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class TestActions:
    def test_forced_failure_default_description(self) -> None:
        assert ForcedFailure(grpc.StatusCode.ABORTED).description == INJECTED_DESCRIPTION

    def test_forced_failure_rejects_ok(self) -> None:
        with pytest.raises(ValueError):
            ForcedFailure(grpc.StatusCode.OK)

    def test_delay_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            Delay(-1)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class TestPolicies:
    def test_fail_methods_matches_by_name(self) -> None:
        policy = FailMethods([Operation.EXECUTE_STREAMING_SQL], grpc.StatusCode.DEADLINE_EXCEEDED)
        assert isinstance(policy(EXECUTE_STREAMING_SQL), ForcedFailure)
        assert policy(COMMIT) is PASSTHROUGH

    def test_fail_methods_accepts_strings(self) -> None:
        policy = FailMethods([COMMIT], grpc.StatusCode.UNAVAILABLE)
        assert isinstance(policy(COMMIT), ForcedFailure)

    def test_none_matches_everything(self) -> None:
        policy = FailMethods(None, grpc.StatusCode.INTERNAL)
        assert isinstance(policy("/any.Service/Method"), ForcedFailure)

    def test_random_failure_rate(self) -> None:
        policy = RandomFailure(None, grpc.StatusCode.ABORTED, 0.5, rng=random.Random(1))
        failures = sum(isinstance(policy(COMMIT), ForcedFailure) for _ in range(2000))
        assert 850 < failures < 1150

    def test_random_failure_extremes(self) -> None:
        never = RandomFailure(None, grpc.StatusCode.ABORTED, 0.0)
        always = RandomFailure(None, grpc.StatusCode.ABORTED, 1.0)
        assert all(never(COMMIT) is PASSTHROUGH for _ in range(100))
        assert all(isinstance(always(COMMIT), ForcedFailure) for _ in range(100))

    def test_random_failure_validates_rate(self) -> None:
        with pytest.raises(ValueError):
            RandomFailure(None, grpc.StatusCode.ABORTED, 1.5)

    def test_fail_first(self) -> None:
        policy = FailFirst([Operation.COMMIT], grpc.StatusCode.UNAVAILABLE, times=2)
        assert policy(EXECUTE_STREAMING_SQL) is PASSTHROUGH
        assert isinstance(policy(COMMIT), ForcedFailure)
        assert isinstance(policy(COMMIT), ForcedFailure)
        assert policy(COMMIT) is PASSTHROUGH

    def test_delay_methods_bounds(self) -> None:
        policy = DelayMethods([Operation.COMMIT], min_ms=50, max_ms=500, rng=random.Random(2))
        for _ in range(100):
            action = policy(COMMIT)
            assert isinstance(action, Delay)
            assert 0.05 <= action.seconds <= 0.5
        assert policy(EXECUTE_STREAMING_SQL) is PASSTHROUGH

    def test_delay_methods_validates_bounds(self) -> None:
        with pytest.raises(ValueError):
            DelayMethods(None, min_ms=100, max_ms=10)

    def test_call_counter(self) -> None:
        counter = CallCounter()
        assert counter(COMMIT) is PASSTHROUGH
        counter(COMMIT)
        counter(EXECUTE_STREAMING_SQL)
        assert counter.count(Operation.COMMIT) == 2
        assert counter.total() == 3


# ---------------------------------------------------------------------------
# InjectedFailure
# ---------------------------------------------------------------------------


class TestInjectedFailure:
    def setup_method(self) -> None:
        self.failure = InjectedFailure(grpc.StatusCode.DEADLINE_EXCEEDED, INJECTED_DESCRIPTION)

    def test_is_an_rpc_error_and_call(self) -> None:
        assert isinstance(self.failure, grpc.RpcError)
        assert isinstance(self.failure, grpc.Call)
        assert isinstance(self.failure, grpc.Future)
        assert self.failure.code() is grpc.StatusCode.DEADLINE_EXCEEDED
        assert self.failure.details() == "INJECTED BY TEST"

    def test_result_raises_itself(self) -> None:
        with pytest.raises(InjectedFailure) as info:
            self.failure.result()
        assert info.value is self.failure

    def test_iteration_raises_itself(self) -> None:
        with pytest.raises(grpc.RpcError):
            next(iter(self.failure))

    def test_is_a_finished_future(self) -> None:
        assert self.failure.done()
        assert not self.failure.running()
        assert self.failure.exception() is self.failure
        seen: list[Any] = []
        self.failure.add_done_callback(seen.append)
        assert seen == [self.failure]


# ---------------------------------------------------------------------------
# FaultInjectionInterceptor
# ---------------------------------------------------------------------------


class TestFaultInjectionInterceptor:
    def test_first_failure_wins(self) -> None:
        counter = CallCounter()
        interceptor = FaultInjectionInterceptor(
            [
                FailMethods([Operation.COMMIT], grpc.StatusCode.UNAVAILABLE, "first"),
                FailMethods([Operation.COMMIT], grpc.StatusCode.INTERNAL, "second"),
                counter,
            ]
        )
        _, failure = interceptor.evaluate(COMMIT)
        assert failure is not None and failure.description == "first"
        assert counter.total() == 0

    def test_delays_accumulate(self) -> None:
        interceptor = FaultInjectionInterceptor([lambda m: Delay(0.1), lambda m: Delay(0.2)])
        delay, failure = interceptor.evaluate(COMMIT)
        assert delay == pytest.approx(0.3)
        assert failure is None

    def test_failure_short_circuits_the_transport(self) -> None:
        slept: list[float] = []
        interceptor = FaultInjectionInterceptor(
            [lambda m: Delay(0.25), FailMethods(None, grpc.StatusCode.ABORTED)],
            sleep=slept.append,
        )
        continuation = _Continuation()
        call = interceptor.intercept_unary_unary(continuation, _details(COMMIT), object())
        assert isinstance(call, InjectedFailure)
        assert call.code() is grpc.StatusCode.ABORTED
        assert continuation.calls == []
        assert slept == [0.25]

    def test_passthrough_forwards(self) -> None:
        continuation = _Continuation()
        interceptor = FaultInjectionInterceptor([CallCounter()], sleep=lambda s: None)
        result = interceptor.intercept_unary_stream(
            continuation, _details(EXECUTE_STREAMING_SQL), "req"
        )
        assert result == "forwarded"
        assert len(continuation.calls) == 1

    def test_bytes_method_names(self) -> None:
        counter = CallCounter()
        interceptor = FaultInjectionInterceptor([counter], sleep=lambda s: None)
        interceptor.intercept_unary_unary(_Continuation(), _details(COMMIT.encode()), "req")
        assert counter.count(COMMIT) == 1


class TestInterceptorChain:
    def test_of_policies(self) -> None:
        chain = InterceptorChain.of_policies(CallCounter())
        assert len(chain) == 1
        assert isinstance(next(iter(chain)), FaultInjectionInterceptor)

    def test_empty_chain_returns_channel(self) -> None:
        sentinel = object()
        assert InterceptorChain().intercept(sentinel) is sentinel  # type: ignore[arg-type]
