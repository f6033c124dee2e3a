"""Simulation – ExecutionTimeSimulator.

Turns the registry state for one call into the outcome actually delivered:

1. abort injection for transactional operations (skips the registry);
2. the operation-level entry, whose error wins over any statement result;
3. the statement-level entry, when the call carries a statement.

Delays of both levels add up and are applied by :meth:`wait` on the handler
thread, outside every registry lock.
"""
from __future__ import annotations

import dataclasses
import random
import threading

import grpc

from spanner_chaos.observability.logging import get_logger
from spanner_chaos.protocol.methods import Operation
from spanner_chaos.registry import (
    ErrorOutcome,
    ExecutionTime,
    LeafOutcome,
    OperationKey,
    OutcomeRegistry,
    QueryResult,
    StatementKey,
    UpdateCount,
    unwrap,
)
from spanner_chaos.simulation.abort import AbortPolicy

logger = get_logger(__name__)

ABORTED_DESCRIPTION = "Transaction was aborted (injected by abort policy)"


@dataclasses.dataclass(frozen=True)
class Delivery:
    """What one call receives.

    ``outcome`` is ``None`` when nothing was programmed for the call; the
    service then applies its default. ``stream_error`` is an error to raise
    part-way through a streamed result, after ``stream_index`` rows.
    """

    outcome: LeafOutcome | None
    delay: float = 0.0
    aborted: bool = False
    stream_error: ErrorOutcome | None = None

    @property
    def error(self) -> ErrorOutcome | None:
        return self.outcome if isinstance(self.outcome, ErrorOutcome) else None


class ExecutionTimeSimulator:
    def __init__(
        self,
        registry: OutcomeRegistry,
        abort_policy: AbortPolicy | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._registry = registry
        self._abort_policy = abort_policy or AbortPolicy()
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()

    @property
    def abort_policy(self) -> AbortPolicy:
        return self._abort_policy

    @abort_policy.setter
    def abort_policy(self, policy: AbortPolicy) -> None:
        # Reference swap: calls that already read the old policy keep it.
        self._abort_policy = policy

    def simulate(self, operation: Operation, statement: StatementKey | None = None) -> Delivery:
        policy = self._abort_policy
        if operation.is_transactional:
            with self._rng_lock:
                aborted = policy.fires(self._rng)
            if aborted:
                logger.info("fault.abort_injected", operation=operation.value)
                return Delivery(
                    ErrorOutcome(grpc.StatusCode.ABORTED, ABORTED_DESCRIPTION),
                    aborted=True,
                )

        op_timing, op_leaf = unwrap(self._registry.take(OperationKey(operation)))
        delay = self._draw(op_timing)
        stream_error: ErrorOutcome | None = None
        if isinstance(op_leaf, ErrorOutcome):
            if statement is None or not self._streams(operation, op_leaf):
                return Delivery(op_leaf, delay)
            stream_error = op_leaf
        if statement is None:
            return Delivery(op_leaf, delay)

        st_timing, st_leaf = unwrap(self._registry.take(statement))
        delay += self._draw(st_timing)
        if isinstance(st_leaf, ErrorOutcome) and self._streams(operation, st_leaf):
            stream_error = stream_error or st_leaf
            st_leaf = QueryResult.empty()
        if st_leaf is None and isinstance(op_leaf, (QueryResult, UpdateCount)):
            st_leaf = op_leaf
        if st_leaf is None and stream_error is not None:
            # The operation's stream error was consumed; it must still be delivered.
            st_leaf = QueryResult.empty()
        return Delivery(st_leaf, delay, stream_error=stream_error)

    @staticmethod
    def _streams(operation: Operation, error: ErrorOutcome) -> bool:
        return operation.is_streaming and error.stream_index is not None

    def _draw(self, timing: ExecutionTime | None) -> float:
        if timing is None:
            return 0.0
        if timing.random <= 0:
            return timing.minimum
        with self._rng_lock:
            return timing.minimum + self._rng.uniform(0, timing.random)

    @staticmethod
    def wait(delivery: Delivery, cancelled: threading.Event) -> bool:
        """Block for the delivery's delay; ``False`` if the call was cancelled."""
        if delivery.delay <= 0:
            return not cancelled.is_set()
        return not cancelled.wait(delivery.delay)


__all__ = ["ABORTED_DESCRIPTION", "Delivery", "ExecutionTimeSimulator"]
