"""Simulation – AbortPolicy."""
from __future__ import annotations

import dataclasses
import random

DEFAULT_ABORT_PROBABILITY = 0.001


@dataclasses.dataclass(frozen=True)
class AbortPolicy:
    """Probability that a transactional call is aborted regardless of its outcome.

    The default mirrors the contention rate the emulated service was observed
    to produce; tests that need determinism set it to ``0.0`` or ``1.0``.
    """

    probability: float = DEFAULT_ABORT_PROBABILITY

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError("probability must be between 0.0 and 1.0")

    def fires(self, rng: random.Random) -> bool:
        if self.probability <= 0.0:
            return False
        return rng.random() < self.probability


NEVER_ABORT = AbortPolicy(0.0)
ALWAYS_ABORT = AbortPolicy(1.0)

__all__ = ["ALWAYS_ABORT", "AbortPolicy", "DEFAULT_ABORT_PROBABILITY", "NEVER_ABORT"]
