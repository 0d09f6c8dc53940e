import threading

import pytest

from social_timer.services.timer import (
    ConfigurationFault,
    ManualClock,
    SystemClock,
    build_timer_service,
    check_clock,
)
from social_timer.services.timer.broadcaster import Broadcaster
from social_timer.services.timer.clock import NS_PER_SEC
from social_timer.services.timer.coordinator import ResetCoordinator
from social_timer.services.timer.elapsed import ElapsedBreakdown, whole_seconds
from social_timer.services.timer.state import TimerState
from conftest import Recorder


SECONDS_IN_EVERY_UNIT = 31536000 + 2592000 + 86400 + 3600 + 60 + 1


def _wire(clock, token_cache_size=16):
    state = TimerState(clock)
    broadcaster = Broadcaster(state)
    coordinator = ResetCoordinator(state, broadcaster, token_cache_size=token_cache_size)
    return state, broadcaster, coordinator


def test_elapsed_starts_at_zero_and_follows_clock(clock):
    state = TimerState(clock)
    assert state.elapsed() == 0
    clock.advance(5)
    assert state.elapsed() == 5 * NS_PER_SEC


def test_reset_restarts_elapsed(clock):
    state, _, coordinator = _wire(clock)
    clock.advance(10)
    assert state.elapsed() == 10 * NS_PER_SEC
    coordinator.request_reset()
    assert state.elapsed() == 0
    clock.advance(3)
    assert state.elapsed() == 3 * NS_PER_SEC


def test_resets_at_same_instant_get_distinct_epochs(clock):
    state, _, coordinator = _wire(clock)
    clock.advance(1)
    first = coordinator.request_reset()
    second = coordinator.request_reset()
    assert first == 1 * NS_PER_SEC
    assert second == first + 1
    assert state.epoch == second
    # epoch sits ahead of the clock; elapsed stays clamped at zero
    assert state.elapsed() == 0


def test_reset_at_startup_instant_moves_epoch_forward(clock):
    state, _, coordinator = _wire(clock)
    start = state.epoch
    assert coordinator.request_reset() == start + 1


def test_concurrent_resets_are_strictly_increasing():
    state, broadcaster, coordinator = _wire(SystemClock())
    recorder = Recorder()
    broadcaster.subscribe(recorder)
    results = []
    results_lock = threading.Lock()

    def worker():
        local = [coordinator.request_reset() for _ in range(50)]
        with results_lock:
            results.append(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    everything = [epoch for local in results for epoch in local]
    assert len(everything) == 400
    assert len(set(everything)) == 400
    for local in results:
        assert local == sorted(local)
    assert state.epoch == max(everything)
    # the viewer saw each reset once, oldest first
    seen = recorder.epochs()
    assert seen == sorted(seen)
    assert len(seen) == len(set(seen))
    assert seen[-1] == max(everything)


def test_reset_token_is_deduplicated(clock):
    state, broadcaster, coordinator = _wire(clock)
    recorder = Recorder()
    broadcaster.subscribe(recorder)
    clock.advance(2)
    first = coordinator.request_reset('click-1')
    clock.advance(2)
    again = coordinator.request_reset('click-1')
    assert again == first
    assert state.epoch == first
    assert recorder.epochs() == [first]


def test_reset_token_cache_evicts_oldest(clock):
    _, _, coordinator = _wire(clock, token_cache_size=2)
    clock.advance(1)
    a = coordinator.request_reset('a')
    clock.advance(1)
    coordinator.request_reset('b')
    clock.advance(1)
    coordinator.request_reset('c')
    clock.advance(1)
    assert coordinator.request_reset('a') != a


def test_token_cache_can_be_disabled(clock):
    _, _, coordinator = _wire(clock, token_cache_size=0)
    first = coordinator.request_reset('same')
    assert coordinator.request_reset('same') == first + 1


def test_manual_clock_refuses_to_go_backwards():
    clock = ManualClock()
    with pytest.raises(ValueError):
        clock.advance(-1)


class _BrokenClock:
    def now(self):
        raise OSError('no clock here')

    def wall(self):
        return 0.0


class _FloatClock:
    def now(self):
        return 1.5

    def wall(self):
        return 0.0


class _BackwardsClock:
    def __init__(self):
        self._values = [10, 5]

    def now(self):
        return self._values.pop(0)

    def wall(self):
        return 0.0


@pytest.mark.parametrize('bad_clock', [_BrokenClock(), _FloatClock(), _BackwardsClock()])
def test_unusable_clock_is_a_configuration_fault(bad_clock):
    with pytest.raises(ConfigurationFault):
        check_clock(bad_clock)


def test_system_clock_passes_check():
    check_clock(SystemClock())


def test_build_timer_service_refuses_broken_clock():
    with pytest.raises(ConfigurationFault):
        build_timer_service(clock=_BrokenClock())


def test_service_reading_breakdown(clock):
    timer = build_timer_service(clock=clock)
    clock.advance(SECONDS_IN_EVERY_UNIT)
    reading = timer.get_elapsed()
    assert reading.elapsed_seconds == SECONDS_IN_EVERY_UNIT
    assert reading.to_dict()['elapsed'] == {
        'years': 1, 'months': 1, 'days': 1, 'hours': 1, 'minutes': 1, 'seconds': 1,
    }


def test_breakdown_of_small_values():
    assert ElapsedBreakdown.from_seconds(0) == ElapsedBreakdown()
    assert ElapsedBreakdown.from_seconds(-5) == ElapsedBreakdown()
    assert ElapsedBreakdown.from_seconds(3725) == ElapsedBreakdown(hours=1, minutes=2, seconds=5)
    assert whole_seconds(60 * NS_PER_SEC - 1) == 59


def test_wall_time_of_epoch(clock):
    timer = build_timer_service(clock=clock)
    clock.advance(30)
    epoch = timer.reset()
    clock.advance(10)
    assert timer.wall_time_of(epoch) == pytest.approx(clock.wall() - 10)


class _UnwritableStore:
    def __init__(self):
        self.attempts = 0

    def load(self):
        return 1_700_000_000.0

    def save(self, reset_at):
        self.attempts += 1
        raise OSError('database is locked')


def test_reset_survives_store_failure(clock, caplog):
    store = _UnwritableStore()
    timer = build_timer_service(clock=clock, store=store)
    viewer = Recorder()
    timer.subscribe(viewer)
    clock.advance(4)

    with caplog.at_level('ERROR'):
        epoch = timer.reset()

    assert store.attempts == 1
    assert timer.get_elapsed().epoch == epoch
    assert viewer.epochs() == [epoch]
    assert any('[timer-store]' in r.getMessage() for r in caplog.records)
