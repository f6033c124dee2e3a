"""Client – DatabaseClient entry point."""
from __future__ import annotations

from types import TracebackType

import grpc

from spanner_chaos.client.result_set import ResultSet
from spanner_chaos.client.transaction import TransactionRunner, as_statement
from spanner_chaos.config.settings import HarnessSettings
from spanner_chaos.interceptors import InterceptorChain
from spanner_chaos.protocol import DatabaseStub, ExecuteSqlRequest, Statement


class ReadContext:
    """Single-use read outside any transaction."""

    def __init__(self, stub: DatabaseStub, timeout: float | None) -> None:
        self._stub = stub
        self._timeout = timeout

    def execute_query(self, statement: Statement | str) -> ResultSet:
        stmt = as_statement(statement)
        request = ExecuteSqlRequest(sql=stmt.sql, params=dict(stmt.params))
        return ResultSet(lambda: self._stub.ExecuteStreamingSql(request, timeout=self._timeout))


class DatabaseClient:
    """Minimal transactional client used to drive the harness end to end.

    Usage::

        client = DatabaseClient.connect(server.address, chain=InterceptorChain.of_policies(...))
        with client.single_use().execute_query("select 1") as rs:
            while rs.next():
                ...
        client.read_write_transaction().run(lambda tx: tx.execute_update(stmt))
    """

    def __init__(
        self,
        channel: grpc.Channel,
        settings: HarnessSettings | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._channel = channel
        self._settings = settings or HarnessSettings()
        self._timeout = timeout
        self._stub = DatabaseStub(channel)

    @classmethod
    def connect(
        cls,
        address: str,
        settings: HarnessSettings | None = None,
        *,
        chain: InterceptorChain | None = None,
        timeout: float | None = None,
    ) -> DatabaseClient:
        """Open a plaintext channel, attaching ``chain`` for the client's lifetime."""
        channel = grpc.insecure_channel(address)
        if chain is not None:
            channel = chain.intercept(channel)
        return cls(channel, settings, timeout=timeout)

    def single_use(self, timeout: float | None = None) -> ReadContext:
        return ReadContext(self._stub, timeout if timeout is not None else self._timeout)

    def read_write_transaction(self, timeout: float | None = None) -> TransactionRunner:
        return TransactionRunner(
            self._stub,
            self._settings,
            timeout if timeout is not None else self._timeout,
        )

    def close(self) -> None:
        self._channel.close()

    def __enter__(self) -> DatabaseClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["DatabaseClient", "ReadContext"]
