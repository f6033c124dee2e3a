"""Client – reference transactional client driving the harness in tests."""
from spanner_chaos.client.client import DatabaseClient, ReadContext
from spanner_chaos.client.result_set import ResultSet
from spanner_chaos.client.transaction import Transaction, TransactionRunner

__all__ = ["DatabaseClient", "ReadContext", "ResultSet", "Transaction", "TransactionRunner"]
