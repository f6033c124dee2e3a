"""Testing generators – Hypothesis strategies for harness data."""
from spanner_chaos.testing.generators.strategies import (
    ERROR_CODES,
    error_outcome_strategy,
    outcome_strategy,
    param_values_strategy,
    query_result_strategy,
    statement_strategy,
)

__all__ = [
    "ERROR_CODES",
    "error_outcome_strategy",
    "outcome_strategy",
    "param_values_strategy",
    "query_result_strategy",
    "statement_strategy",
]
