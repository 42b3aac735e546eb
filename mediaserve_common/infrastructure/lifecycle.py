"""Lifecycle Controller — the single sanctioned path to fatal termination.

Invariants:
    - Order is fixed: coerce to error → log at ERROR → close timer registry →
      flush log handlers → terminate
    - Exit status is non-zero (1 unless told otherwise)
    - Termination ends the process even when called from inside a request
      handler; the ASGI server never sees a SystemExit it could swallow
    - Never used for recoverable errors; other components report and return

Design Decisions:
    - terminate is injectable so tests observe the status without dying
"""

import logging
import os
import sys
from typing import Callable, NoReturn

from mediaserve_common.core.errors import FatalExit
from mediaserve_common.infrastructure.observability import ServiceLogger
from mediaserve_common.infrastructure.timer_registry import TimerRegistry


def flush_logging() -> None:
    """Flush every handler reachable from the root logger and the std streams."""
    loggers = [logging.getLogger()] + [
        logger for logger in logging.root.manager.loggerDict.values()
        if isinstance(logger, logging.Logger)
    ]
    for logger in loggers:
        for handler in logger.handlers:
            handler.flush()
    for stream in (sys.stdout, sys.stderr):
        stream.flush()


def hard_exit(status: int) -> NoReturn:
    flush_logging()
    os._exit(status)


class LifecycleController:
    def __init__(
        self,
        registry: TimerRegistry,
        logger: ServiceLogger | None = None,
        terminate: Callable[[int], None] = hard_exit,
    ):
        self.registry = registry
        self.logger = logger or ServiceLogger(__name__)
        self.terminate = terminate
        self._exiting = False

    @property
    def exiting(self) -> bool:
        return self._exiting

    def exit(self, message: str | BaseException, status: int = 1) -> NoReturn:
        """Log the fatal error, drain pending timers and terminate the process."""
        if self._exiting:
            self.terminate(status)
            raise SystemExit(status)
        self._exiting = True

        error = message if isinstance(message, BaseException) else FatalExit(str(message))
        self.logger.log(error)
        self.registry.close()
        self.terminate(status)
        raise SystemExit(status)
