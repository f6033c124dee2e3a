"""Kernel error hierarchy: public re-export surface.

Hierarchy::

    BaseError
    ├── HarnessError              (harness.py)
    │   ├── UnregisteredRequestError
    │   ├── SerializationError
    │   ├── ServerStartError
    │   └── ServerTeardownError
    └── DatabaseError             (database.py)
"""

from spanner_chaos.kernel.errors.base import BaseError
from spanner_chaos.kernel.errors.database import DatabaseError, ErrorCode
from spanner_chaos.kernel.errors.harness import (
    HarnessError,
    SerializationError,
    ServerStartError,
    ServerTeardownError,
    UnregisteredRequestError,
)

__all__ = [
    "BaseError",
    "DatabaseError",
    "ErrorCode",
    "HarnessError",
    "SerializationError",
    "ServerStartError",
    "ServerTeardownError",
    "UnregisteredRequestError",
]
