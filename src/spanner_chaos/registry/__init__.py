"""Registry – request keys, programmed outcomes and the outcome store."""
from spanner_chaos.registry.keys import OperationKey, RequestKey, StatementKey, freeze_params
from spanner_chaos.registry.outcomes import (
    RECOVERED,
    DefaultOutcome,
    ErrorOutcome,
    ExecutionTime,
    LeafOutcome,
    ProgrammedOutcome,
    QueryResult,
    Recovered,
    UpdateCount,
    is_one_shot,
    unwrap,
)
from spanner_chaos.registry.registry import EntryState, OutcomeRegistry, RegistryEntry

__all__ = [
    "DefaultOutcome",
    "EntryState",
    "ErrorOutcome",
    "ExecutionTime",
    "LeafOutcome",
    "OperationKey",
    "OutcomeRegistry",
    "ProgrammedOutcome",
    "QueryResult",
    "RECOVERED",
    "Recovered",
    "RegistryEntry",
    "RequestKey",
    "StatementKey",
    "UpdateCount",
    "freeze_params",
    "is_one_shot",
    "unwrap",
]
