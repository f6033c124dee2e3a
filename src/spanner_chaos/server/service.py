"""Server – MockDatabaseService.

An in-process servicer answering every call from the outcome registry.
Each call goes through the same steps: it is recorded, its transaction is
validated, the simulator computes the delivery (abort injection first), the
handler waits out the simulated execution time while watching for
cancellation, and finally the programmed result or status is written.
"""
from __future__ import annotations

import contextlib
import random
import threading
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterator, NoReturn

import grpc

from spanner_chaos.config.settings import HarnessSettings
from spanner_chaos.kernel.errors import UnregisteredRequestError
from spanner_chaos.observability.logging import get_logger
from spanner_chaos.protocol import (
    BeginTransactionRequest,
    CommitRequest,
    CommitResponse,
    DatabaseServicer,
    Empty,
    ExecuteSqlRequest,
    Operation,
    PartialResultSet,
    ResultSet,
    ResultSetMetadata,
    RollbackRequest,
    Statement,
    Transaction,
)
from spanner_chaos.registry import (
    DefaultOutcome,
    ErrorOutcome,
    ExecutionTime,
    OperationKey,
    OutcomeRegistry,
    ProgrammedOutcome,
    QueryResult,
    StatementKey,
    UpdateCount,
)
from spanner_chaos.server.calls import CallRecord
from spanner_chaos.simulation import AbortPolicy, Delivery, ExecutionTimeSimulator

logger = get_logger(__name__)


class TransactionState(str, Enum):
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"
    ABORTED = "ABORTED"


def _statement_key(statement: Statement | StatementKey | str) -> StatementKey:
    if isinstance(statement, StatementKey):
        return statement
    if isinstance(statement, str):
        return StatementKey.of(statement)
    return StatementKey.from_statement(statement)


class MockDatabaseService(DatabaseServicer):
    """Programmable stand-in for the transactional SQL service.

    Usage::

        service = MockDatabaseService(HarnessSettings(abort_probability=0.0))
        service.put_statement_result(
            "select * from t",
            QueryResult.of([("id", "INT64"), "name"], [["1", "One"], ["2", "Two"]]),
        )
        service.set_execution_time(
            Operation.COMMIT,
            ExecutionTime.of_sticky_exception(grpc.StatusCode.ALREADY_EXISTS, "Row 1 exists"),
        )
    """

    def __init__(
        self,
        settings: HarnessSettings | None = None,
        *,
        registry: OutcomeRegistry | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings or HarnessSettings()
        self._registry = registry or OutcomeRegistry()
        self._simulator = ExecutionTimeSimulator(
            self._registry,
            AbortPolicy(self._settings.abort_probability),
            rng or random.Random(self._settings.seed),
        )
        self._default_outcome = self._settings.default_outcome_policy
        self.calls = CallRecord()
        self._transactions: dict[str, TransactionState] = {}
        self._tx_lock = threading.Lock()
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    @property
    def registry(self) -> OutcomeRegistry:
        return self._registry

    def put_statement_result(
        self, statement: Statement | StatementKey | str, outcome: ProgrammedOutcome
    ) -> None:
        self._registry.put(_statement_key(statement), outcome)

    def put_statement_results(
        self, statement: Statement | StatementKey | str, outcomes: list[ProgrammedOutcome]
    ) -> None:
        """Program consecutive outcomes for one statement, first one first."""
        self._registry.put_sequence(_statement_key(statement), outcomes)

    def remove_statement_result(self, statement: Statement | StatementKey | str) -> bool:
        return self._registry.remove(_statement_key(statement))

    def put_operation_result(self, operation: Operation, outcome: ProgrammedOutcome) -> None:
        self._registry.put(OperationKey(operation), outcome)

    def set_execution_time(self, operation: Operation, execution_time: ExecutionTime) -> None:
        if not isinstance(execution_time, ExecutionTime):
            raise TypeError("execution_time must be an ExecutionTime")
        self.put_operation_result(operation, execution_time)

    def clear_execution_time(self, operation: Operation) -> bool:
        return self._registry.remove(OperationKey(operation))

    @property
    def abort_probability(self) -> float:
        return self._simulator.abort_policy.probability

    def set_abort_probability(self, probability: float) -> None:
        self._simulator.abort_policy = AbortPolicy(probability)
        logger.info("mock_service.abort_probability_set", probability=probability)

    @property
    def default_outcome(self) -> DefaultOutcome:
        return self._default_outcome

    def set_default_outcome(self, default: DefaultOutcome) -> None:
        self._default_outcome = DefaultOutcome(default)

    def abort_all_transactions(self) -> int:
        """Mark every active transaction aborted; returns how many were."""
        with self._tx_lock:
            active = [tx for tx, st in self._transactions.items() if st is TransactionState.ACTIVE]
            for tx in active:
                self._transactions[tx] = TransactionState.ABORTED
        logger.info("mock_service.transactions_aborted", count=len(active))
        return len(active)

    def transaction_state(self, transaction_id: str) -> TransactionState | None:
        with self._tx_lock:
            return self._transactions.get(transaction_id)

    @property
    def in_flight(self) -> int:
        """Handlers currently running; returns to zero once calls finish or are cancelled."""
        with self._in_flight_lock:
            return self._in_flight

    # ------------------------------------------------------------------
    # RPC handlers
    # ------------------------------------------------------------------

    def ExecuteStreamingSql(
        self, request: ExecuteSqlRequest, context: grpc.ServicerContext
    ) -> Iterator[PartialResultSet]:
        operation = Operation.EXECUTE_STREAMING_SQL
        with self._handling(operation, request, context) as cancelled:
            self._check_transaction(request.transaction_id, context)
            key = StatementKey.from_request(request)
            delivery = self._simulator.simulate(operation, key)
            self._wait(delivery, cancelled, context, operation)
            result = self._query_result(delivery, key, request.transaction_id, context)

            yield PartialResultSet(
                metadata=ResultSetMetadata(result.fields, request.transaction_id)
            )
            failure = delivery.stream_error
            for index, row in enumerate(result.rows):
                if failure is not None and index == failure.stream_index:
                    self._fail(failure, request.transaction_id, context)
                if cancelled.is_set():
                    self._cancelled(context, operation)
                yield PartialResultSet(row=row)
            if failure is not None:
                self._fail(failure, request.transaction_id, context)

    def ExecuteSql(self, request: ExecuteSqlRequest, context: grpc.ServicerContext) -> ResultSet:
        operation = Operation.EXECUTE_SQL
        with self._handling(operation, request, context) as cancelled:
            self._check_transaction(request.transaction_id, context)
            key = StatementKey.from_request(request)
            delivery = self._simulator.simulate(operation, key)
            self._wait(delivery, cancelled, context, operation)
            if isinstance(delivery.outcome, UpdateCount):
                return ResultSet(
                    metadata=ResultSetMetadata(transaction_id=request.transaction_id),
                    update_count=delivery.outcome.count,
                )
            result = self._query_result(delivery, key, request.transaction_id, context)
            return ResultSet(
                metadata=ResultSetMetadata(result.fields, request.transaction_id),
                rows=result.rows,
            )

    def BeginTransaction(
        self, request: BeginTransactionRequest, context: grpc.ServicerContext
    ) -> Transaction:
        operation = Operation.BEGIN_TRANSACTION
        with self._handling(operation, request, context) as cancelled:
            delivery = self._simulator.simulate(operation)
            self._wait(delivery, cancelled, context, operation)
            self._raise_if_error(delivery, None, context)
            transaction_id = uuid.uuid4().hex
            with self._tx_lock:
                self._transactions[transaction_id] = TransactionState.ACTIVE
            return Transaction(id=transaction_id)

    def Commit(self, request: CommitRequest, context: grpc.ServicerContext) -> CommitResponse:
        operation = Operation.COMMIT
        with self._handling(operation, request, context) as cancelled:
            self._check_transaction(request.transaction_id, context)
            delivery = self._simulator.simulate(operation)
            self._wait(delivery, cancelled, context, operation)
            self._raise_if_error(delivery, request.transaction_id, context)
            self._finish_transaction(request.transaction_id, TransactionState.COMMITTED, context)
            return CommitResponse(commit_timestamp=datetime.now(UTC).isoformat())

    def Rollback(self, request: RollbackRequest, context: grpc.ServicerContext) -> Empty:
        operation = Operation.ROLLBACK
        with self._handling(operation, request, context) as cancelled:
            delivery = self._simulator.simulate(operation)
            self._wait(delivery, cancelled, context, operation)
            self._raise_if_error(delivery, None, context)
            with self._tx_lock:
                state = self._transactions.get(request.transaction_id)
                if state is None:
                    context.abort(
                        grpc.StatusCode.NOT_FOUND,
                        f"Transaction not found: {request.transaction_id}",
                    )
                if state is TransactionState.COMMITTED:
                    context.abort(
                        grpc.StatusCode.FAILED_PRECONDITION,
                        "Transaction has already been committed",
                    )
                self._transactions[request.transaction_id] = TransactionState.ROLLED_BACK
            return Empty()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _handling(
        self, operation: Operation, request: Any, context: grpc.ServicerContext
    ) -> Iterator[threading.Event]:
        count = self.calls.record(operation, request)
        cancelled = threading.Event()
        if not context.add_callback(cancelled.set):
            cancelled.set()
        with self._in_flight_lock:
            self._in_flight += 1
        logger.debug("mock_service.call", operation=operation.value, count=count)
        try:
            yield cancelled
        finally:
            with self._in_flight_lock:
                self._in_flight -= 1

    def _wait(
        self,
        delivery: Delivery,
        cancelled: threading.Event,
        context: grpc.ServicerContext,
        operation: Operation,
    ) -> None:
        if not self._simulator.wait(delivery, cancelled):
            self._cancelled(context, operation)

    def _cancelled(self, context: grpc.ServicerContext, operation: Operation) -> NoReturn:
        logger.info("mock_service.call_cancelled", operation=operation.value)
        context.abort(grpc.StatusCode.CANCELLED, "Call cancelled during simulated execution")

    def _check_transaction(self, transaction_id: str | None, context: grpc.ServicerContext) -> None:
        if transaction_id is None:
            return
        with self._tx_lock:
            state = self._transactions.get(transaction_id)
        if state is None:
            context.abort(grpc.StatusCode.NOT_FOUND, f"Transaction not found: {transaction_id}")
        if state is TransactionState.ABORTED:
            context.abort(grpc.StatusCode.ABORTED, "Transaction was aborted")
        if state is not TransactionState.ACTIVE:
            context.abort(
                grpc.StatusCode.FAILED_PRECONDITION,
                f"Transaction is no longer active: {state.value.lower()}",
            )

    def _finish_transaction(
        self, transaction_id: str, final: TransactionState, context: grpc.ServicerContext
    ) -> None:
        with self._tx_lock:
            state = self._transactions.get(transaction_id)
            if state is not TransactionState.ACTIVE:
                context.abort(
                    grpc.StatusCode.FAILED_PRECONDITION,
                    f"Transaction is no longer active: {transaction_id}",
                )
            self._transactions[transaction_id] = final

    def _raise_if_error(
        self,
        delivery: Delivery,
        transaction_id: str | None,
        context: grpc.ServicerContext,
    ) -> None:
        if delivery.error is not None:
            self._fail(delivery.error, transaction_id, context)

    def _fail(
        self,
        error: ErrorOutcome,
        transaction_id: str | None,
        context: grpc.ServicerContext,
    ) -> NoReturn:
        if error.code is grpc.StatusCode.ABORTED and transaction_id is not None:
            with self._tx_lock:
                if self._transactions.get(transaction_id) is TransactionState.ACTIVE:
                    self._transactions[transaction_id] = TransactionState.ABORTED
        logger.info("fault.injected", code=error.code.name, description=error.description)
        context.abort(error.code, error.description)

    def _query_result(
        self,
        delivery: Delivery,
        key: StatementKey,
        transaction_id: str | None,
        context: grpc.ServicerContext,
    ) -> QueryResult:
        outcome = delivery.outcome
        if isinstance(outcome, ErrorOutcome):
            self._fail(outcome, transaction_id, context)
        if isinstance(outcome, QueryResult):
            return outcome
        if outcome is None and self._default_outcome is DefaultOutcome.UNIMPLEMENTED:
            error = UnregisteredRequestError(key)
            logger.warning("mock_service.unregistered_statement", key=str(key))
            context.abort(grpc.StatusCode.UNIMPLEMENTED, error.message)
        # Recovered, an update count read as a query, or the empty default.
        return QueryResult.empty()


__all__ = ["MockDatabaseService", "TransactionState"]
