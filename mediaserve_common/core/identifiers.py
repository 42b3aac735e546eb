"""Correlation Identifiers — namespaced UUIDv5 values seeded by a monotonic clock.

Invariants:
    - Two IDs generated in one process are never equal (sequence counter breaks clock ties)
    - Same namespace name always yields the same namespace UUID
"""

import itertools
import json
import time
import uuid
from uuid import UUID

DEFAULT_NAMESPACE_NAME = "nl.mediaserve.common"

_sequence = itertools.count()


def namespace_for(name: str = DEFAULT_NAMESPACE_NAME) -> UUID:
    return uuid.uuid5(uuid.NAMESPACE_DNS, name)


def hrtime() -> tuple[int, int]:
    """Monotonic clock reading as (seconds, nanoseconds)."""
    seconds, nanoseconds = divmod(time.perf_counter_ns(), 1_000_000_000)
    return seconds, nanoseconds


def correlation_id(namespace: UUID | None = None) -> str:
    seconds, nanoseconds = hrtime()
    name = json.dumps([seconds, nanoseconds, next(_sequence)])
    return str(uuid.uuid5(namespace or namespace_for(), name))
