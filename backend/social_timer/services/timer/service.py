import logging
from dataclasses import dataclass
from typing import Optional

from .broadcaster import Broadcaster, Handle, Subscriber
from .clock import NS_PER_SEC, SystemClock, check_clock
from .coordinator import ResetCoordinator
from .elapsed import ElapsedBreakdown, whole_seconds
from .state import TimerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerReading:
    epoch: int
    elapsed_ns: int

    @property
    def elapsed_seconds(self) -> int:
        return whole_seconds(self.elapsed_ns)

    @property
    def breakdown(self) -> ElapsedBreakdown:
        return ElapsedBreakdown.from_seconds(self.elapsed_seconds)

    def to_dict(self):
        return {
            'epoch': self.epoch,
            'elapsed_seconds': self.elapsed_seconds,
            'elapsed': self.breakdown.to_dict(),
        }


class TimerService:
    """The query/command surface used by HTTP routes and socket handlers."""

    def __init__(self, state: TimerState, coordinator: ResetCoordinator, broadcaster: Broadcaster, store=None):
        self._state = state
        self._coordinator = coordinator
        self._broadcaster = broadcaster
        self._store = store

    @property
    def store(self):
        return self._store

    def get_elapsed(self) -> TimerReading:
        return self.reading_for(self._state.epoch)

    def reading_for(self, epoch: int) -> TimerReading:
        return TimerReading(epoch, self._state.elapsed_since(epoch))

    def reset(self, token: Optional[str] = None) -> int:
        epoch = self._coordinator.request_reset(token)
        if self._store is not None:
            # the reset is already applied and pushed; a failed save only costs durability
            try:
                self._store.save(self.wall_time_of(epoch))
            except Exception as exc:
                logger.error(f"[timer-store] save failed for epoch={epoch}: {exc!r}")
        return epoch

    def subscribe(self, handle: Handle) -> Optional[Subscriber]:
        return self._broadcaster.subscribe(handle)

    def unsubscribe(self, subscriber: Optional[Subscriber]) -> bool:
        return self._broadcaster.unsubscribe(subscriber)

    def subscriber_count(self) -> int:
        return len(self._broadcaster)

    def wall_time_of(self, epoch: int) -> float:
        """Map a monotonic epoch to wall-clock seconds, as of now."""
        clock = self._state.clock
        return clock.wall() - (clock.now() - epoch) / NS_PER_SEC


def restore_epoch(clock, store) -> Optional[int]:
    """Translate the stored wall-clock reset time into a monotonic epoch.

    A missing record is initialised to the current time. A stored time in
    the future restores as "just reset".
    """
    stored = store.load()
    if stored is None:
        store.save(clock.wall())
        logger.info('[timer-restore] no stored epoch, starting fresh')
        return None
    elapsed = max(0.0, clock.wall() - stored)
    logger.info(f"[timer-restore] stored reset_at={stored} elapsed={elapsed:.0f}s")
    return clock.now() - int(elapsed * NS_PER_SEC)


def build_timer_service(clock=None, token_cache_size: int = 256, store=None) -> TimerService:
    """Wire clock, state, broadcaster and coordinator into one service.

    Raises :class:`ConfigurationFault` if the clock is unusable.
    """
    clock = clock if clock is not None else SystemClock()
    check_clock(clock)
    epoch = restore_epoch(clock, store) if store is not None else None
    state = TimerState(clock, epoch)
    broadcaster = Broadcaster(state)
    coordinator = ResetCoordinator(state, broadcaster, token_cache_size=token_cache_size)
    return TimerService(state, coordinator, broadcaster, store=store)
