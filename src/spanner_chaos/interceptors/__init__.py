"""Interceptors – client-side fault injection by method name."""
from spanner_chaos.interceptors.actions import (
    INJECTED_DESCRIPTION,
    PASSTHROUGH,
    Action,
    Delay,
    ForcedFailure,
    InterceptPolicy,
    Passthrough,
)
from spanner_chaos.interceptors.chain import InterceptorChain
from spanner_chaos.interceptors.interceptor import FaultInjectionInterceptor, InjectedFailure
from spanner_chaos.interceptors.policies import (
    CallCounter,
    DelayMethods,
    FailFirst,
    FailMethods,
    RandomFailure,
)

__all__ = [
    "Action",
    "CallCounter",
    "Delay",
    "DelayMethods",
    "FailFirst",
    "FailMethods",
    "FaultInjectionInterceptor",
    "ForcedFailure",
    "INJECTED_DESCRIPTION",
    "InjectedFailure",
    "InterceptPolicy",
    "InterceptorChain",
    "PASSTHROUGH",
    "Passthrough",
    "RandomFailure",
]
