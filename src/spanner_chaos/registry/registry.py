"""Registry – OutcomeRegistry and the per-entry state machine.

Each entry moves ``PROGRAMMED -> FIRED_ONCE -> RECOVERED`` when it holds a
one-shot error: the error is delivered by exactly one :meth:`take`, after
which the entry delivers whatever it replaced (or :data:`RECOVERED`). Sticky
errors and results stay ``PROGRAMMED`` forever.

Locking: the key map is guarded by one registry lock, held only to swap
entries. Each entry has its own lock, so a ``take`` serialises only with
other calls on the same key, and the check-then-advance step is atomic.
"""
from __future__ import annotations

import threading
from enum import Enum
from typing import Iterable, Iterator

from spanner_chaos.observability.logging import get_logger
from spanner_chaos.registry.keys import RequestKey
from spanner_chaos.registry.outcomes import (
    RECOVERED,
    ErrorOutcome,
    ExecutionTime,
    ProgrammedOutcome,
    QueryResult,
    Recovered,
    UpdateCount,
    is_one_shot,
    unwrap,
)

logger = get_logger(__name__)

_OUTCOME_TYPES = (QueryResult, UpdateCount, ErrorOutcome, Recovered, ExecutionTime)


class EntryState(str, Enum):
    PROGRAMMED = "PROGRAMMED"
    FIRED_ONCE = "FIRED_ONCE"
    RECOVERED = "RECOVERED"


class RegistryEntry:
    """One programmed outcome plus the entry it falls back to."""

    __slots__ = ("outcome", "previous", "state", "_lock")

    def __init__(self, outcome: ProgrammedOutcome, previous: RegistryEntry | None = None) -> None:
        self.outcome = outcome
        self.previous = previous
        self.state = EntryState.PROGRAMMED
        self._lock = threading.Lock()

    def current(self) -> ProgrammedOutcome:
        """The outcome the next :meth:`advance` would deliver."""
        if self.state is EntryState.PROGRAMMED:
            return self.outcome
        return self._fallback(self.previous.current() if self.previous else RECOVERED)

    def advance(self) -> ProgrammedOutcome:
        with self._lock:
            if self.state is EntryState.PROGRAMMED:
                if is_one_shot(self.outcome):
                    self.state = EntryState.FIRED_ONCE
                return self.outcome
            self.state = EntryState.RECOVERED
            delivered = self.previous.advance() if self.previous else RECOVERED
            return self._fallback(delivered)

    def _fallback(self, delivered: ProgrammedOutcome) -> ProgrammedOutcome:
        # The delay of this entry survives the transition.
        timing, _ = unwrap(self.outcome)
        if timing is None:
            return delivered
        return timing.wrapping(delivered)


class OutcomeRegistry:
    """Thread-safe map from :data:`RequestKey` to programmed outcome.

    ``put`` is last-write-wins. When the new outcome is a one-shot error,
    the replaced entry is kept as its fallback, so the call after the error
    sees the previously programmed outcome again.
    """

    def __init__(self) -> None:
        self._entries: dict[RequestKey, RegistryEntry] = {}
        self._lock = threading.Lock()

    def put(self, key: RequestKey, outcome: ProgrammedOutcome) -> None:
        if not isinstance(outcome, _OUTCOME_TYPES):
            raise TypeError(f"Unsupported outcome type: {type(outcome).__name__}")
        with self._lock:
            self._put_locked(key, outcome)
        logger.debug("registry.put", key=str(key), outcome=type(unwrap(outcome)[1]).__name__)

    def put_sequence(self, key: RequestKey, outcomes: Iterable[ProgrammedOutcome]) -> None:
        """Program outcomes delivered in the given order.

        Every outcome but the last should be a one-shot error; a sticky error
        or a result cuts the sequence short, as it never advances.
        """
        items = list(outcomes)
        for outcome in items:
            if not isinstance(outcome, _OUTCOME_TYPES):
                raise TypeError(f"Unsupported outcome type: {type(outcome).__name__}")
        with self._lock:
            for outcome in reversed(items):
                self._put_locked(key, outcome)
        logger.debug("registry.put_sequence", key=str(key), length=len(items))

    def _put_locked(self, key: RequestKey, outcome: ProgrammedOutcome) -> None:
        previous = self._entries.get(key) if is_one_shot(outcome) else None
        self._entries[key] = RegistryEntry(outcome, previous)

    def resolve(self, key: RequestKey) -> ProgrammedOutcome | None:
        """Peek at the outcome the next call on ``key`` would receive."""
        entry = self._entries.get(key)
        return entry.current() if entry is not None else None

    def take(self, key: RequestKey) -> ProgrammedOutcome | None:
        """Deliver the outcome for one call on ``key`` and advance its entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.advance()

    def state(self, key: RequestKey) -> EntryState | None:
        entry = self._entries.get(key)
        return entry.state if entry is not None else None

    def remove(self, key: RequestKey) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug("registry.removed", key=str(key))
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[RequestKey]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RequestKey]:
        return iter(self.keys())


__all__ = ["EntryState", "OutcomeRegistry", "RegistryEntry"]
