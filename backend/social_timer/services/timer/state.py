class TimerState:
    """Single source of truth for the timer: the epoch of the last reset.

    Elapsed time is derived on demand and never stored. ``_epoch`` is a
    single int attribute; writers replace it in one assignment, so readers
    see either the old or the new epoch, never a mix.
    """

    def __init__(self, clock, epoch=None):
        self._clock = clock
        self._epoch = clock.now() if epoch is None else int(epoch)

    @property
    def clock(self):
        return self._clock

    @property
    def epoch(self) -> int:
        return self._epoch

    def elapsed(self) -> int:
        return self.elapsed_since(self._epoch)

    def elapsed_since(self, epoch: int) -> int:
        # epoch may sit one tick ahead of now after a collision
        return max(0, self._clock.now() - epoch)

    def reset(self, at: int) -> None:
        # caller holds the coordinator lock and guarantees at >= epoch
        self._epoch = at
