"""Interceptors – actions a policy can take for one call."""
from __future__ import annotations

import dataclasses
from typing import Callable, Union

import grpc

INJECTED_DESCRIPTION = "INJECTED BY TEST"


@dataclasses.dataclass(frozen=True)
class Passthrough:
    """Forward the call unchanged."""


@dataclasses.dataclass(frozen=True)
class ForcedFailure:
    """Fail the call with ``code`` without reaching the transport."""

    code: grpc.StatusCode
    description: str = INJECTED_DESCRIPTION

    def __post_init__(self) -> None:
        if self.code is grpc.StatusCode.OK:
            raise ValueError("a forced failure cannot carry StatusCode.OK")


@dataclasses.dataclass(frozen=True)
class Delay:
    """Hold the call for ``seconds`` before continuing down the chain."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError("seconds must be >= 0")


PASSTHROUGH = Passthrough()

Action = Union[Passthrough, ForcedFailure, Delay]
InterceptPolicy = Callable[[str], Action]

__all__ = [
    "Action",
    "Delay",
    "ForcedFailure",
    "INJECTED_DESCRIPTION",
    "InterceptPolicy",
    "PASSTHROUGH",
    "Passthrough",
]
