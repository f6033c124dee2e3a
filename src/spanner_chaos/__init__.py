"""
spanner_chaos – fault-injection harness for a transactional SQL-over-gRPC client.

Import path convention::

    from spanner_chaos.server import MockServer, MockDatabaseService
    from spanner_chaos.registry import QueryResult, ExecutionTime
    from spanner_chaos.interceptors import InterceptorChain, FailMethods
    from spanner_chaos.client import DatabaseClient
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
