"""Testing support – fixtures and Hypothesis strategies.

Import in your ``conftest.py``::

    pytest_plugins = ["spanner_chaos.testing.fixtures"]

Fixtures are not imported here so that the strategies can be used
without pytest.
"""
from spanner_chaos.testing.generators import (
    error_outcome_strategy,
    outcome_strategy,
    query_result_strategy,
    statement_strategy,
)

__all__ = [
    "error_outcome_strategy",
    "outcome_strategy",
    "query_result_strategy",
    "statement_strategy",
]
