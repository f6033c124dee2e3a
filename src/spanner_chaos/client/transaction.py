"""Client – read/write transactions and the retrying runner."""
from __future__ import annotations

from typing import Any, Callable, TypeVar

import grpc
import tenacity

from spanner_chaos.client.result_set import ResultSet
from spanner_chaos.config.settings import HarnessSettings
from spanner_chaos.kernel.errors import DatabaseError
from spanner_chaos.observability.logging import get_logger
from spanner_chaos.protocol import (
    BeginTransactionRequest,
    CommitRequest,
    DatabaseStub,
    ExecuteSqlRequest,
    Mutation,
    RollbackRequest,
    Statement,
)
from spanner_chaos.resilience.retry import TenacityRetryPolicy

T = TypeVar("T")
logger = get_logger(__name__)


def as_statement(statement: Statement | str) -> Statement:
    return Statement(statement) if isinstance(statement, str) else statement


def call_unary(method: Callable[..., Any], request: Any, timeout: float | None) -> Any:
    """Invoke a unary multi-callable, translating the status into a DatabaseError."""
    try:
        return method(request, timeout=timeout)
    except grpc.RpcError as exc:
        raise DatabaseError.from_rpc_error(exc) from exc


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, DatabaseError) and exc.is_retryable


class Transaction:
    """One attempt of a read/write transaction."""

    def __init__(self, stub: DatabaseStub, transaction_id: str, timeout: float | None) -> None:
        self.id = transaction_id
        self._stub = stub
        self._timeout = timeout
        self._seqno = 0
        self._mutations: list[Mutation] = []

    @property
    def mutations(self) -> tuple[Mutation, ...]:
        return tuple(self._mutations)

    def _request(self, statement: Statement | str) -> ExecuteSqlRequest:
        stmt = as_statement(statement)
        self._seqno += 1
        return ExecuteSqlRequest(
            sql=stmt.sql,
            params=dict(stmt.params),
            transaction_id=self.id,
            seqno=self._seqno,
        )

    def execute_query(self, statement: Statement | str) -> ResultSet:
        request = self._request(statement)
        return ResultSet(
            lambda: self._stub.ExecuteStreamingSql(request, timeout=self._timeout)
        )

    def execute_update(self, statement: Statement | str) -> int:
        result = call_unary(self._stub.ExecuteSql, self._request(statement), self._timeout)
        return result.update_count if result.update_count is not None else 0

    def buffer(self, *mutations: Mutation) -> None:
        self._mutations.extend(mutations)


class TransactionRunner:
    """Runs a unit of work in a read/write transaction, retrying on ``ABORTED``.

    Every attempt begins a fresh transaction; ``attempts`` counts them.
    Other errors propagate unmodified after a best-effort rollback.
    """

    def __init__(
        self,
        stub: DatabaseStub,
        settings: HarnessSettings,
        timeout: float | None = None,
    ) -> None:
        self._stub = stub
        self._timeout = timeout
        self.attempts = 0
        self.commit_timestamp: str | None = None
        self._policy = TenacityRetryPolicy(
            max_attempts=settings.max_transaction_attempts,
            wait=tenacity.wait_exponential(
                multiplier=settings.retry_initial_backoff,
                max=settings.retry_max_backoff,
            ),
            retry=tenacity.retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
        )

    def run(self, work: Callable[[Transaction], T]) -> T:
        return self._policy.execute(lambda: self._attempt(work))

    def _attempt(self, work: Callable[[Transaction], T]) -> T:
        self.attempts += 1
        begun = call_unary(self._stub.BeginTransaction, BeginTransactionRequest(), self._timeout)
        transaction = Transaction(self._stub, begun.id, self._timeout)
        try:
            result = work(transaction)
        except Exception:
            self._rollback(transaction)
            raise
        response = call_unary(
            self._stub.Commit,
            CommitRequest(transaction_id=transaction.id, mutations=transaction.mutations),
            self._timeout,
        )
        self.commit_timestamp = response.commit_timestamp
        return result

    def _rollback(self, transaction: Transaction) -> None:
        try:
            call_unary(
                self._stub.Rollback, RollbackRequest(transaction_id=transaction.id), self._timeout
            )
        except DatabaseError as exc:
            # The original failure is what the caller needs to see.
            logger.warning(
                "transaction.rollback_failed",
                transaction_id=transaction.id,
                error_code=exc.error_code.value,
            )

    def _log_retry(self, retry_state: tenacity.RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "transaction.retry",
            attempt=retry_state.attempt_number,
            error=getattr(exc, "message", repr(exc)),
        )


__all__ = ["Transaction", "TransactionRunner", "as_statement", "call_unary"]
