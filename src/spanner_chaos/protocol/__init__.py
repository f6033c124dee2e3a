"""Protocol – method identities, messages, JSON codec and stub wiring."""
from spanner_chaos.protocol.codec import JsonMessageSerializer, default_serializer
from spanner_chaos.protocol.messages import (
    BeginTransactionRequest,
    CommitRequest,
    CommitResponse,
    Empty,
    ExecuteSqlRequest,
    Field,
    Mutation,
    MutationKind,
    PartialResultSet,
    ResultSet,
    ResultSetMetadata,
    RollbackRequest,
    Statement,
    Transaction,
    TypeCode,
)
from spanner_chaos.protocol.methods import (
    BEGIN_TRANSACTION,
    COMMIT,
    EXECUTE_SQL,
    EXECUTE_STREAMING_SQL,
    ROLLBACK,
    SERVICE_NAME,
    TRANSACTIONAL_OPERATIONS,
    Operation,
    full_method_name,
    normalize_method,
)
from spanner_chaos.protocol.stub import (
    DatabaseServicer,
    DatabaseStub,
    add_database_servicer_to_server,
)

__all__ = [
    "BEGIN_TRANSACTION",
    "COMMIT",
    "EXECUTE_SQL",
    "EXECUTE_STREAMING_SQL",
    "ROLLBACK",
    "BeginTransactionRequest",
    "CommitRequest",
    "CommitResponse",
    "DatabaseServicer",
    "DatabaseStub",
    "Empty",
    "ExecuteSqlRequest",
    "Field",
    "JsonMessageSerializer",
    "Mutation",
    "MutationKind",
    "Operation",
    "PartialResultSet",
    "ResultSet",
    "ResultSetMetadata",
    "RollbackRequest",
    "SERVICE_NAME",
    "Statement",
    "TRANSACTIONAL_OPERATIONS",
    "Transaction",
    "TypeCode",
    "add_database_servicer_to_server",
    "default_serializer",
    "full_method_name",
    "normalize_method",
]
