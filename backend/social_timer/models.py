from social_timer import db

DEFAULT_TIMER_KEY = 'social_timer_count'


class TimerEpoch(db.Model):
    __tablename__ = 'timer_epoch'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False, index=True, default=DEFAULT_TIMER_KEY)
    # wall-clock seconds since the unix epoch of the last reset
    reset_at = db.Column(db.Float, nullable=False)
