import time

from breathpacer.adapters.base_adapter import ClockAdapter


class MonotonicClock(ClockAdapter):
    """Wall-clock driven pacing, backed by time.monotonic()."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000


class ManualClock(ClockAdapter):
    """
    A clock that only moves when told to. Used by tests and by simulations
    that replay a session faster than real time.
    """
    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now_ms(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        if ms < 0:
            raise ValueError("A clock cannot move backwards.")
        self._now += ms
        return self._now

    def set(self, ms: float) -> None:
        self._now = float(ms)
