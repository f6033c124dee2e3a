"""Unit tests for abort injection and the execution-time simulator."""

from __future__ import annotations

import random
import threading
import time

import grpc
import pytest

from spanner_chaos.protocol import Operation
from spanner_chaos.registry import (
    RECOVERED,
    ErrorOutcome,
    ExecutionTime,
    OperationKey,
    OutcomeRegistry,
    QueryResult,
    StatementKey,
    UpdateCount,
)
from spanner_chaos.simulation import (
    ABORTED_DESCRIPTION,
    ALWAYS_ABORT,
    NEVER_ABORT,
    AbortPolicy,
    Delivery,
    ExecutionTimeSimulator,
)

SELECT = StatementKey.of("select * from t")
ROWS = QueryResult.of(["id"], [["1"], ["2"], ["3"]])


def _simulator(registry: OutcomeRegistry, policy: AbortPolicy = NEVER_ABORT) -> ExecutionTimeSimulator:
    return ExecutionTimeSimulator(registry, policy, random.Random(7))


# ---------------------------------------------------------------------------
# AbortPolicy
# ---------------------------------------------------------------------------


class TestAbortPolicy:
    def test_default_probability(self) -> None:
        assert AbortPolicy().probability == 0.001

    @pytest.mark.parametrize("probability", [-0.1, 1.5])
    def test_rejects_out_of_range(self, probability: float) -> None:
        with pytest.raises(ValueError):
            AbortPolicy(probability)

    def test_extremes(self) -> None:
        rng = random.Random(1)
        assert all(ALWAYS_ABORT.fires(rng) for _ in range(100))
        assert not any(NEVER_ABORT.fires(rng) for _ in range(100))

    def test_rate_is_roughly_honoured(self) -> None:
        rng = random.Random(42)
        hits = sum(AbortPolicy(0.3).fires(rng) for _ in range(10_000))
        assert 2_700 < hits < 3_300


# ---------------------------------------------------------------------------
# ExecutionTimeSimulator
# ---------------------------------------------------------------------------


class TestAbortInjection:
    def setup_method(self) -> None:
        self.registry = OutcomeRegistry()
        self.registry.put(SELECT, ROWS)

    @pytest.mark.parametrize(
        "operation", [Operation.EXECUTE_STREAMING_SQL, Operation.EXECUTE_SQL, Operation.COMMIT]
    )
    def test_transactional_operations_abort(self, operation: Operation) -> None:
        delivery = _simulator(self.registry, ALWAYS_ABORT).simulate(operation, SELECT)
        assert delivery.aborted
        assert delivery.error is not None
        assert delivery.error.code is grpc.StatusCode.ABORTED
        assert delivery.error.description == ABORTED_DESCRIPTION

    @pytest.mark.parametrize("operation", [Operation.BEGIN_TRANSACTION, Operation.ROLLBACK])
    def test_other_operations_never_abort(self, operation: Operation) -> None:
        delivery = _simulator(self.registry, ALWAYS_ABORT).simulate(operation)
        assert not delivery.aborted
        assert delivery.outcome is None

    def test_abort_skips_the_registry(self) -> None:
        self.registry.put(SELECT, ErrorOutcome(grpc.StatusCode.INTERNAL))
        _simulator(self.registry, ALWAYS_ABORT).simulate(Operation.EXECUTE_SQL, SELECT)
        assert isinstance(self.registry.resolve(SELECT), ErrorOutcome)

    def test_policy_swap(self) -> None:
        sim = _simulator(self.registry)
        assert not sim.simulate(Operation.COMMIT).aborted
        sim.abort_policy = ALWAYS_ABORT
        assert sim.simulate(Operation.COMMIT).aborted


class TestOutcomeResolution:
    def setup_method(self) -> None:
        self.registry = OutcomeRegistry()
        self.sim = _simulator(self.registry)

    def test_unregistered_statement(self) -> None:
        delivery = self.sim.simulate(Operation.EXECUTE_SQL, SELECT)
        assert delivery == Delivery(None)

    def test_statement_result(self) -> None:
        self.registry.put(SELECT, ROWS)
        assert self.sim.simulate(Operation.EXECUTE_STREAMING_SQL, SELECT).outcome == ROWS

    def test_operation_error_wins_over_statement(self) -> None:
        self.registry.put(SELECT, ROWS)
        error = ErrorOutcome(grpc.StatusCode.PERMISSION_DENIED)
        self.registry.put(OperationKey(Operation.EXECUTE_SQL), error)
        assert self.sim.simulate(Operation.EXECUTE_SQL, SELECT).outcome == error
        # The statement entry was not consumed.
        assert self.registry.resolve(SELECT) == ROWS

    def test_operation_error_without_statement(self) -> None:
        error = ErrorOutcome(grpc.StatusCode.ALREADY_EXISTS, sticky=True)
        self.registry.put(OperationKey(Operation.COMMIT), error)
        assert self.sim.simulate(Operation.COMMIT).error == error
        assert self.sim.simulate(Operation.COMMIT).error == error

    def test_one_shot_operation_error_then_recovered(self) -> None:
        self.registry.put(OperationKey(Operation.COMMIT), ErrorOutcome(grpc.StatusCode.INTERNAL))
        assert self.sim.simulate(Operation.COMMIT).error is not None
        assert self.sim.simulate(Operation.COMMIT).outcome is RECOVERED

    def test_operation_result_used_when_statement_unknown(self) -> None:
        self.registry.put(OperationKey(Operation.EXECUTE_SQL), UpdateCount(5))
        assert self.sim.simulate(Operation.EXECUTE_SQL, SELECT).outcome == UpdateCount(5)

    def test_statement_stream_error(self) -> None:
        self.registry.put(
            SELECT, ExecutionTime.of_stream_exception(grpc.StatusCode.UNAVAILABLE, stream_index=2)
        )
        delivery = self.sim.simulate(Operation.EXECUTE_STREAMING_SQL, SELECT)
        assert delivery.outcome == QueryResult.empty()
        assert delivery.stream_error is not None
        assert delivery.stream_error.stream_index == 2

    def test_operation_stream_error_keeps_rows(self) -> None:
        self.registry.put(SELECT, ROWS)
        self.registry.put(
            OperationKey(Operation.EXECUTE_STREAMING_SQL),
            ExecutionTime.of_stream_exception(grpc.StatusCode.UNAVAILABLE, stream_index=1),
        )
        delivery = self.sim.simulate(Operation.EXECUTE_STREAMING_SQL, SELECT)
        assert delivery.outcome == ROWS
        assert delivery.stream_error is not None

    def test_operation_stream_error_on_unregistered_statement(self) -> None:
        self.registry.put(
            OperationKey(Operation.EXECUTE_STREAMING_SQL),
            ExecutionTime.of_stream_exception(grpc.StatusCode.UNAVAILABLE, stream_index=0),
        )
        delivery = self.sim.simulate(Operation.EXECUTE_STREAMING_SQL, SELECT)
        assert delivery.outcome == QueryResult.empty()
        assert delivery.stream_error is not None
        assert delivery.stream_error.code is grpc.StatusCode.UNAVAILABLE

    def test_stream_index_ignored_for_unary(self) -> None:
        self.registry.put(
            SELECT, ExecutionTime.of_stream_exception(grpc.StatusCode.UNAVAILABLE, stream_index=1)
        )
        delivery = self.sim.simulate(Operation.EXECUTE_SQL, SELECT)
        assert delivery.error is not None
        assert delivery.stream_error is None


class TestDelays:
    def setup_method(self) -> None:
        self.registry = OutcomeRegistry()
        self.sim = _simulator(self.registry)

    def test_minimum_only(self) -> None:
        self.registry.put(OperationKey(Operation.COMMIT), ExecutionTime.of_minimum_and_random_time(20))
        assert self.sim.simulate(Operation.COMMIT).delay == pytest.approx(0.02)

    def test_random_part_is_bounded(self) -> None:
        self.registry.put(OperationKey(Operation.COMMIT), ExecutionTime.of_minimum_and_random_time(10, 30))
        for _ in range(50):
            assert 0.01 <= self.sim.simulate(Operation.COMMIT).delay <= 0.04

    def test_levels_add_up(self) -> None:
        self.registry.put(
            OperationKey(Operation.EXECUTE_SQL), ExecutionTime.of_minimum_and_random_time(10)
        )
        self.registry.put(SELECT, ExecutionTime(minimum=0.02, then=UpdateCount(1)))
        delivery = self.sim.simulate(Operation.EXECUTE_SQL, SELECT)
        assert delivery.delay == pytest.approx(0.03)
        assert delivery.outcome == UpdateCount(1)

    def test_wait_returns_true_after_delay(self) -> None:
        start = time.monotonic()
        assert ExecutionTimeSimulator.wait(Delivery(None, delay=0.05), threading.Event())
        assert time.monotonic() - start >= 0.04

    def test_wait_observes_cancellation(self) -> None:
        cancelled = threading.Event()
        threading.Timer(0.05, cancelled.set).start()
        start = time.monotonic()
        assert not ExecutionTimeSimulator.wait(Delivery(None, delay=10.0), cancelled)
        assert time.monotonic() - start < 5.0

    def test_wait_without_delay_reports_prior_cancel(self) -> None:
        cancelled = threading.Event()
        cancelled.set()
        assert not ExecutionTimeSimulator.wait(Delivery(None), cancelled)
