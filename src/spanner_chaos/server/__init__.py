"""Server – the in-process mock database service and its gRPC server."""
from spanner_chaos.server.calls import CallRecord
from spanner_chaos.server.server import MockServer
from spanner_chaos.server.service import MockDatabaseService, TransactionState

__all__ = ["CallRecord", "MockDatabaseService", "MockServer", "TransactionState"]
