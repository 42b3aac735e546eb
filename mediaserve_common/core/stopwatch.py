"""Stopwatch — elapsed-time measurement on the monotonic high-resolution clock."""

from time import perf_counter


class Stopwatch:
    """start()/reset() re-baseline; stop() reads without re-baselining."""

    def __init__(self) -> None:
        self._baseline = perf_counter()

    def start(self) -> None:
        self._baseline = perf_counter()

    def reset(self) -> None:
        self._baseline = perf_counter()

    def stop(self) -> float:
        return perf_counter() - self._baseline
