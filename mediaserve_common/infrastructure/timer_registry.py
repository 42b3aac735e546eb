"""Timer Registry — tracks every outstanding deadline timer of one Service.

Invariants:
    - Registry order is arming order; drain_all() clears in that order
    - clear() is idempotent: cleared, fired or foreign handles are a no-op, never an error
    - A fired handle stays registered until its owner clears it
    - After close(), arm() raises RegistryClosedError (no timers race shutdown)

Design Decisions:
    - Owned per Service instance, injected into clients (no process-wide list)
    - Built on loop.call_later: TimerHandle.cancel() is already idempotent
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

from mediaserve_common.core.errors import InvalidArgumentError, RegistryClosedError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TimerHandle:
    """Opaque token for one armed deadline timer."""
    id: int
    deadline_ms: float
    fired: bool = False
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._timer is not None and self._timer.cancelled()

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()


class TimerRegistry:
    """Ordered set of armed TimerHandles, swept on shutdown."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._handles: dict[int, TimerHandle] = {}
        self._ids = itertools.count(1)
        self._closed = False

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, TimerHandle) and self._handles.get(handle.id) is handle

    @property
    def closed(self) -> bool:
        return self._closed

    def arm(self, deadline_ms: float, on_expire: Callable[[], object]) -> TimerHandle:
        if deadline_ms < 0:
            raise InvalidArgumentError(
                f"Deadline must be non-negative, got {deadline_ms}", "deadline_ms",
            )
        if self._closed:
            raise RegistryClosedError()

        loop = self._loop or asyncio.get_running_loop()
        handle = TimerHandle(id=next(self._ids), deadline_ms=deadline_ms)
        handle._timer = loop.call_later(deadline_ms / 1000, self._fire, handle, on_expire)
        self._handles[handle.id] = handle
        return handle

    def clear(self, handle: TimerHandle) -> None:
        handle._cancel()
        if self._handles.get(handle.id) is handle:
            del self._handles[handle.id]

    def drain_all(self) -> int:
        """Clear every outstanding handle; returns how many were drained."""
        handles = list(self._handles.values())
        for handle in handles:
            handle._cancel()
        self._handles.clear()
        if handles:
            logger.debug(
                f"Drained {len(handles)} pending timer(s)",
                extra={"timer_count": len(handles)},
            )
        return len(handles)

    def close(self) -> int:
        """Drain and refuse further arm() calls."""
        self._closed = True
        return self.drain_all()

    @staticmethod
    def _fire(handle: TimerHandle, on_expire: Callable[[], object]) -> None:
        handle.fired = True
        on_expire()
