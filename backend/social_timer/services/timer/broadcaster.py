import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

from .elapsed import ElapsedBreakdown, whole_seconds
from .errors import DeliveryFault

logger = logging.getLogger(__name__)

SNAPSHOT_EVENT = 'timer_snapshot'
RESET_EVENT = 'timer_reset'

Handle = Callable[[str, dict], None]


@dataclass(frozen=True)
class TimerEvent:
    name: str
    epoch: int
    elapsed_ns: int

    def to_payload(self) -> dict:
        seconds = whole_seconds(self.elapsed_ns)
        return {
            'epoch': self.epoch,
            'elapsed_seconds': seconds,
            'elapsed': ElapsedBreakdown.from_seconds(seconds).to_dict(),
        }


class Subscriber:
    """One connected viewer.

    ``handle`` is called as ``handle(event_name, payload)`` and raises
    :class:`DeliveryFault` once its channel is gone. A handle may also expose
    a truthy ``closed`` attribute to signal the same thing up front.
    """

    _ids = itertools.count(1)

    def __init__(self, handle: Handle):
        self.id = next(Subscriber._ids)
        self.handle = handle
        self.alive = True
        # newest epoch this viewer has been told about
        self.last_epoch: Optional[int] = None
        self.lock = threading.Lock()

    def __repr__(self):
        return f"<Subscriber id={self.id} alive={self.alive} last_epoch={self.last_epoch}>"


def _is_closed(handle) -> bool:
    return bool(getattr(handle, 'closed', False))


class Broadcaster:
    """Registry of live subscribers plus ordered fan-out of reset events.

    Lock order is always subscriber lock, then registry lock. Fan-out never
    holds the registry lock while calling a handle.
    """

    def __init__(self, state):
        self._state = state
        self._registry_lock = threading.Lock()
        self._subscribers: Dict[int, Subscriber] = {}
        self._pending: Deque[int] = deque()
        self._delivery_lock = threading.Lock()

    def __len__(self):
        with self._registry_lock:
            return len(self._subscribers)

    def subscribe(self, handle: Handle) -> Optional[Subscriber]:
        """Register ``handle`` and push the current elapsed time to it.

        Returns None when the handle is already closed or the snapshot
        could not be delivered.
        """
        if _is_closed(handle):
            logger.info('[timer-subscribe] handle already closed, dropped')
            return None
        subscriber = Subscriber(handle)
        with subscriber.lock:
            with self._registry_lock:
                epoch = self._state.epoch
                elapsed = self._state.elapsed_since(epoch)
                self._subscribers[subscriber.id] = subscriber
            logger.debug(f"[timer-subscribe] subscriber={subscriber.id} epoch={epoch}")
            if not self._deliver(subscriber, TimerEvent(SNAPSHOT_EVENT, epoch, elapsed)):
                return None
        return subscriber

    def unsubscribe(self, subscriber: Optional[Subscriber]) -> bool:
        if subscriber is None:
            return False
        with self._registry_lock:
            removed = self._subscribers.pop(subscriber.id, None)
            subscriber.alive = False
        if removed is not None:
            logger.debug(f"[timer-unsubscribe] subscriber={subscriber.id}")
        return removed is not None

    def stage(self, epoch: int) -> None:
        """Queue a reset notification; must be called in reset order."""
        self._pending.append(epoch)

    def flush(self) -> int:
        """Deliver every staged notification, oldest first."""
        delivered = 0
        with self._delivery_lock:
            while self._pending:
                delivered += self._fan_out(self._pending.popleft())
        return delivered

    def publish(self, new_epoch: int) -> int:
        self.stage(new_epoch)
        return self.flush()

    def _fan_out(self, epoch: int) -> int:
        with self._registry_lock:
            targets = list(self._subscribers.values())
        event = TimerEvent(RESET_EVENT, epoch, self._state.elapsed_since(epoch))
        delivered = 0
        for subscriber in targets:
            with subscriber.lock:
                if not subscriber.alive:
                    continue
                if subscriber.last_epoch is not None and subscriber.last_epoch >= epoch:
                    continue
                if self._deliver(subscriber, event):
                    delivered += 1
        logger.info(f"[timer-publish] epoch={epoch} delivered={delivered} targets={len(targets)}")
        return delivered

    def _deliver(self, subscriber: Subscriber, event: TimerEvent) -> bool:
        # caller holds subscriber.lock
        if _is_closed(subscriber.handle):
            self._drop(subscriber, 'channel closed')
            return False
        try:
            subscriber.handle(event.name, event.to_payload())
        except DeliveryFault as exc:
            self._drop(subscriber, exc)
            return False
        except Exception as exc:
            logger.warning(f"[timer-deliver] subscriber={subscriber.id} unexpected handle error: {exc!r}")
            self._drop(subscriber, exc)
            return False
        subscriber.last_epoch = event.epoch
        return True

    def _drop(self, subscriber: Subscriber, reason) -> None:
        with self._registry_lock:
            self._subscribers.pop(subscriber.id, None)
            subscriber.alive = False
        logger.info(f"[timer-drop] subscriber={subscriber.id} reason={reason}")
