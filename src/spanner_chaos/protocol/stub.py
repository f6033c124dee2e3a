"""Protocol – client stub, servicer base and server registration."""
from __future__ import annotations

from typing import Any, Iterator

import grpc

from spanner_chaos.protocol.codec import default_serializer
from spanner_chaos.protocol.messages import (
    BeginTransactionRequest,
    CommitRequest,
    CommitResponse,
    Empty,
    ExecuteSqlRequest,
    PartialResultSet,
    ResultSet,
    RollbackRequest,
    Transaction,
)
from spanner_chaos.protocol.methods import SERVICE_NAME, Operation

_serialize = default_serializer.serializer()


class DatabaseStub:
    """Client-side multi-callables for every method of the service."""

    def __init__(self, channel: grpc.Channel) -> None:
        self.ExecuteStreamingSql = channel.unary_stream(
            Operation.EXECUTE_STREAMING_SQL.method,
            request_serializer=_serialize,
            response_deserializer=default_serializer.deserializer(PartialResultSet),
        )
        self.ExecuteSql = channel.unary_unary(
            Operation.EXECUTE_SQL.method,
            request_serializer=_serialize,
            response_deserializer=default_serializer.deserializer(ResultSet),
        )
        self.BeginTransaction = channel.unary_unary(
            Operation.BEGIN_TRANSACTION.method,
            request_serializer=_serialize,
            response_deserializer=default_serializer.deserializer(Transaction),
        )
        self.Commit = channel.unary_unary(
            Operation.COMMIT.method,
            request_serializer=_serialize,
            response_deserializer=default_serializer.deserializer(CommitResponse),
        )
        self.Rollback = channel.unary_unary(
            Operation.ROLLBACK.method,
            request_serializer=_serialize,
            response_deserializer=default_serializer.deserializer(Empty),
        )


class DatabaseServicer:
    """Base servicer; every method answers ``UNIMPLEMENTED`` until overridden."""

    def ExecuteStreamingSql(
        self, request: ExecuteSqlRequest, context: grpc.ServicerContext
    ) -> Iterator[PartialResultSet]:
        context.abort(grpc.StatusCode.UNIMPLEMENTED, "ExecuteStreamingSql not implemented")

    def ExecuteSql(self, request: ExecuteSqlRequest, context: grpc.ServicerContext) -> ResultSet:
        context.abort(grpc.StatusCode.UNIMPLEMENTED, "ExecuteSql not implemented")

    def BeginTransaction(
        self, request: BeginTransactionRequest, context: grpc.ServicerContext
    ) -> Transaction:
        context.abort(grpc.StatusCode.UNIMPLEMENTED, "BeginTransaction not implemented")

    def Commit(self, request: CommitRequest, context: grpc.ServicerContext) -> CommitResponse:
        context.abort(grpc.StatusCode.UNIMPLEMENTED, "Commit not implemented")

    def Rollback(self, request: RollbackRequest, context: grpc.ServicerContext) -> Empty:
        context.abort(grpc.StatusCode.UNIMPLEMENTED, "Rollback not implemented")


def add_database_servicer_to_server(servicer: DatabaseServicer, server: grpc.Server) -> None:
    handlers: dict[str, Any] = {
        Operation.EXECUTE_STREAMING_SQL.value: grpc.unary_stream_rpc_method_handler(
            servicer.ExecuteStreamingSql,
            request_deserializer=default_serializer.deserializer(ExecuteSqlRequest),
            response_serializer=_serialize,
        ),
        Operation.EXECUTE_SQL.value: grpc.unary_unary_rpc_method_handler(
            servicer.ExecuteSql,
            request_deserializer=default_serializer.deserializer(ExecuteSqlRequest),
            response_serializer=_serialize,
        ),
        Operation.BEGIN_TRANSACTION.value: grpc.unary_unary_rpc_method_handler(
            servicer.BeginTransaction,
            request_deserializer=default_serializer.deserializer(BeginTransactionRequest),
            response_serializer=_serialize,
        ),
        Operation.COMMIT.value: grpc.unary_unary_rpc_method_handler(
            servicer.Commit,
            request_deserializer=default_serializer.deserializer(CommitRequest),
            response_serializer=_serialize,
        ),
        Operation.ROLLBACK.value: grpc.unary_unary_rpc_method_handler(
            servicer.Rollback,
            request_deserializer=default_serializer.deserializer(RollbackRequest),
            response_serializer=_serialize,
        ),
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )


__all__ = ["DatabaseServicer", "DatabaseStub", "add_database_servicer_to_server"]
