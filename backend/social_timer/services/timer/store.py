import threading
from typing import Optional

from social_timer import db
from social_timer.models import TimerEpoch, DEFAULT_TIMER_KEY


class EpochStore:
    """Keeps the wall-clock time of the last reset in the database.

    Only used when ``TIMER_PERSIST_EPOCH`` is enabled. The stored value
    never moves backwards, so racing saves settle on the newest reset.
    """

    def __init__(self, app, key: str = DEFAULT_TIMER_KEY):
        self._app = app
        self._key = key
        self._lock = threading.Lock()

    def load(self) -> Optional[float]:
        with self._app.app_context():
            row = TimerEpoch.query.filter_by(key=self._key).first()
            return row.reset_at if row else None

    def save(self, reset_at: float) -> float:
        with self._lock, self._app.app_context():
            row = TimerEpoch.query.filter_by(key=self._key).first()
            if row is None:
                row = TimerEpoch(key=self._key, reset_at=reset_at)
            elif reset_at <= row.reset_at:
                return row.reset_at
            else:
                row.reset_at = reset_at
            try:
                db.session.add(row)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            self._app.logger.info(f"[timer-store] key={self._key} reset_at={reset_at}")
            return reset_at
