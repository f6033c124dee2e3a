"""Simulation – abort injection and execution-time delays."""
from spanner_chaos.simulation.abort import (
    ALWAYS_ABORT,
    DEFAULT_ABORT_PROBABILITY,
    NEVER_ABORT,
    AbortPolicy,
)
from spanner_chaos.simulation.simulator import ABORTED_DESCRIPTION, Delivery, ExecutionTimeSimulator

__all__ = [
    "ABORTED_DESCRIPTION",
    "ALWAYS_ABORT",
    "AbortPolicy",
    "DEFAULT_ABORT_PROBABILITY",
    "Delivery",
    "ExecutionTimeSimulator",
    "NEVER_ABORT",
]
