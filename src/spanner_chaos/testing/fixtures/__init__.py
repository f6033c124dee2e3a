"""Testing fixtures – pytest fixtures for the mock server and client.

Enable in ``conftest.py``::

    pytest_plugins = ["spanner_chaos.testing.fixtures"]
"""
from spanner_chaos.testing.fixtures.harness import (
    database_client,
    harness_logging,
    harness_settings,
    mock_server,
    mock_service,
)

__all__ = ["database_client", "harness_logging", "harness_settings", "mock_server", "mock_service"]
