"""Interceptors – InterceptorChain."""
from __future__ import annotations

from typing import Any, Iterator

import grpc

from spanner_chaos.interceptors.actions import InterceptPolicy
from spanner_chaos.interceptors.interceptor import FaultInjectionInterceptor


class InterceptorChain:
    """Ordered, immutable list of client interceptors.

    Attach once per client channel; the first interceptor is the outermost,
    so the first one to short-circuit wins.

    Usage::

        chain = InterceptorChain.of_policies(
            FailMethods([Operation.EXECUTE_STREAMING_SQL], grpc.StatusCode.DEADLINE_EXCEEDED),
        )
        channel = chain.intercept(grpc.insecure_channel(address))
    """

    def __init__(self, *interceptors: Any) -> None:
        self._interceptors = tuple(interceptors)

    @classmethod
    def of_policies(cls, *policies: InterceptPolicy) -> InterceptorChain:
        return cls(FaultInjectionInterceptor(policies))

    def intercept(self, channel: grpc.Channel) -> grpc.Channel:
        if not self._interceptors:
            return channel
        return grpc.intercept_channel(channel, *self._interceptors)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)


__all__ = ["InterceptorChain"]
