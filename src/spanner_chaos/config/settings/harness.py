"""Config settings – HarnessSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from spanner_chaos.config.settings.base import Settings
from spanner_chaos.config.validation import InvalidSettingValueError
from spanner_chaos.registry.outcomes import DefaultOutcome
from spanner_chaos.simulation.abort import DEFAULT_ABORT_PROBABILITY


@dataclasses.dataclass
class HarnessSettings(Settings):
    """Mock server and reference client settings, read from ``CHAOS_*`` variables.

    ``seed`` fixes the random source of the mock service so abort injection
    and random delays repeat across runs; ``None`` draws a fresh seed.
    """

    _prefix: ClassVar[str] = "CHAOS"

    host: str = "localhost"
    max_workers: int = 10
    abort_probability: float = DEFAULT_ABORT_PROBABILITY
    default_outcome: str = DefaultOutcome.UNIMPLEMENTED.value
    seed: int | None = None
    shutdown_grace: float = 1.0
    shutdown_timeout: float = 5.0
    max_transaction_attempts: int = 50
    retry_initial_backoff: float = 0.005
    retry_max_backoff: float = 0.1
    log_level: str = "INFO"

    def _validate(self) -> None:
        if not 0.0 <= self.abort_probability <= 1.0:
            raise InvalidSettingValueError(
                "abort_probability", self.abort_probability, "must be between 0.0 and 1.0"
            )
        if self.max_workers < 1:
            raise InvalidSettingValueError("max_workers", self.max_workers, "must be >= 1")
        if self.max_transaction_attempts < 1:
            raise InvalidSettingValueError(
                "max_transaction_attempts", self.max_transaction_attempts, "must be >= 1"
            )
        if self.retry_initial_backoff < 0 or self.retry_max_backoff < self.retry_initial_backoff:
            raise InvalidSettingValueError(
                "retry_max_backoff", self.retry_max_backoff, "expected 0 <= initial <= max backoff"
            )
        if self.shutdown_grace < 0 or self.shutdown_timeout <= 0:
            raise InvalidSettingValueError(
                "shutdown_timeout", self.shutdown_timeout, "shutdown times must be positive"
            )
        try:
            DefaultOutcome(self.default_outcome)
        except ValueError:
            allowed = ", ".join(d.value for d in DefaultOutcome)
            raise InvalidSettingValueError(
                "default_outcome", self.default_outcome, f"expected one of {allowed}"
            ) from None
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown log level")

    @property
    def default_outcome_policy(self) -> DefaultOutcome:
        return DefaultOutcome(self.default_outcome)


__all__ = ["HarnessSettings"]
