import logging
import threading
from collections import OrderedDict
from typing import Optional

logger = logging.getLogger(__name__)

# smallest step between two instants (integer nanoseconds)
EPSILON = 1


class ResetCoordinator:
    """Serializes reset requests into one strictly increasing epoch sequence.

    The critical section only reads the clock, swaps the epoch and stages the
    notification. Delivery to subscribers runs after the lock is released.

    An optional ``token`` de-duplicates repeated requests (double clicks):
    a token seen recently returns the epoch it produced the first time and
    triggers nothing.
    """

    def __init__(self, state, broadcaster, token_cache_size: int = 256):
        self._state = state
        self._broadcaster = broadcaster
        self._lock = threading.Lock()
        self._token_cache_size = max(0, int(token_cache_size))
        self._tokens: 'OrderedDict[str, int]' = OrderedDict()

    def request_reset(self, token: Optional[str] = None) -> int:
        with self._lock:
            if token is not None and token in self._tokens:
                self._tokens.move_to_end(token)
                epoch = self._tokens[token]
                logger.info(f"[timer-reset-dup] token={token} epoch={epoch}")
                return epoch
            current = self._state.epoch
            now = self._state.clock.now()
            epoch = now if now > current else current + EPSILON
            self._state.reset(epoch)
            self._broadcaster.stage(epoch)
            if token is not None and self._token_cache_size:
                self._tokens[token] = epoch
                while len(self._tokens) > self._token_cache_size:
                    self._tokens.popitem(last=False)
        if epoch != now:
            logger.info(f"[timer-reset] epoch={epoch} bumped from now={now} previous={current}")
        else:
            logger.info(f"[timer-reset] epoch={epoch} previous={current}")
        self._broadcaster.flush()
        return epoch
