"""Resilience – TenacityRetryPolicy adapter."""
from __future__ import annotations

from typing import Any, Callable, TypeVar

import tenacity

T = TypeVar("T")


class TenacityRetryPolicy:
    """Retry policy backed by the ``tenacity`` library.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    wait:
        A ``tenacity`` wait strategy, e.g.
        ``tenacity.wait_exponential(multiplier=0.01, max=0.1)``.
        Defaults to ``wait_fixed(1)``.
    retry:
        A ``tenacity`` retry predicate, e.g.
        ``tenacity.retry_if_exception(lambda e: e.is_retryable)``.
        Defaults to retrying on any exception.
    reraise:
        Whether to re-raise the original exception after all attempts are
        exhausted.  Defaults to ``True``.
    kwargs:
        Additional keyword arguments forwarded directly to
        :class:`tenacity.Retrying` (``before_sleep`` hooks and the like).

    Example
    -------
    ::

        policy = TenacityRetryPolicy(
            max_attempts=5,
            wait=tenacity.wait_exponential(multiplier=0.5, max=8),
            retry=tenacity.retry_if_exception_type(IOError),
        )
        result = policy.execute(my_fn)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        wait: Any = None,
        retry: Any = None,
        reraise: bool = True,
        **kwargs: Any,
    ) -> None:
        self._max_attempts = max_attempts
        self._wait = wait or tenacity.wait_fixed(1)
        self._retry = retry or tenacity.retry_if_exception(lambda _: True)
        self._reraise = reraise
        self._extra_kwargs = kwargs

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _build_retrying(self) -> tenacity.Retrying:
        return tenacity.Retrying(
            stop=tenacity.stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=self._reraise,
            **self._extra_kwargs,
        )

    def execute(self, func: Callable[[], T]) -> T:
        """Execute *func* synchronously with tenacity retry."""
        return self._build_retrying()(func)


__all__ = ["TenacityRetryPolicy"]
