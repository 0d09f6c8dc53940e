"""Timer domain services: clock, state, reset coordination and fan-out.

This package holds the server-authoritative timer. HTTP routes and socket
handlers only talk to :class:`TimerService`; only ``store`` touches the database.
"""

from .clock import ManualClock, SystemClock, check_clock
from .errors import ConfigurationFault, DeliveryFault, TimerError
from .service import TimerReading, TimerService, build_timer_service

__all__ = [
    'ConfigurationFault',
    'DeliveryFault',
    'ManualClock',
    'SystemClock',
    'TimerError',
    'TimerReading',
    'TimerService',
    'build_timer_service',
    'check_clock',
]
