class TimerError(Exception):
    """Base class for timer errors."""


class ConfigurationFault(TimerError):
    """The timer cannot run on this host (startup only)."""


class DeliveryFault(TimerError):
    """A push to one subscriber failed; the subscriber gets dropped."""
