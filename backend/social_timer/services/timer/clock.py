"""Clock sources.

Instants are integer nanoseconds from an arbitrary origin; only differences
are meaningful. Using integers makes the smallest increment exactly 1.
"""

import threading
import time

from .errors import ConfigurationFault

NS_PER_SEC = 1_000_000_000


class SystemClock:
    """Production clock backed by ``time.monotonic_ns``."""

    def now(self) -> int:
        return time.monotonic_ns()

    def wall(self) -> float:
        return time.time()


class ManualClock:
    """Deterministic clock that only moves when told to.

    Example::

        clock = ManualClock()
        clock.advance(5)
        assert clock.now() == 5 * NS_PER_SEC
    """

    def __init__(self, start_ns: int = 0, wall_start: float = 1_700_000_000.0):
        self._lock = threading.Lock()
        self._now = start_ns
        self._wall = wall_start

    def now(self) -> int:
        with self._lock:
            return self._now

    def wall(self) -> float:
        with self._lock:
            return self._wall

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError('ManualClock cannot move backwards')
        with self._lock:
            if isinstance(seconds, int):
                self._now += seconds * NS_PER_SEC
            else:
                self._now += int(round(seconds * NS_PER_SEC))
            self._wall += seconds


def check_clock(clock) -> None:
    """Fail fast if ``clock`` cannot serve as a monotonic source."""
    if isinstance(clock, SystemClock):
        try:
            info = time.get_clock_info('monotonic')
        except (ValueError, OSError) as exc:
            raise ConfigurationFault(f"monotonic clock unavailable: {exc}") from exc
        if not info.monotonic:
            raise ConfigurationFault(f"clock '{info.implementation}' is not monotonic")
    try:
        first = clock.now()
        second = clock.now()
    except Exception as exc:
        raise ConfigurationFault(f"clock source failed: {exc}") from exc
    if not isinstance(first, int):
        raise ConfigurationFault(f"clock must return integer nanoseconds, got {type(first).__name__}")
    if second < first:
        raise ConfigurationFault('clock source went backwards')
