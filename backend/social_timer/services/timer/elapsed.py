from dataclasses import dataclass, asdict

from .clock import NS_PER_SEC

SECONDS_PER_YEAR = 31536000
SECONDS_PER_MONTH = 2592000
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


@dataclass(frozen=True)
class ElapsedBreakdown:
    """Elapsed seconds split into fixed-length calendar units.

    Years are 365 days and months 30 days; the remainder of each unit
    carries into the next smaller one.
    """
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @classmethod
    def from_seconds(cls, total: int) -> 'ElapsedBreakdown':
        total = max(0, int(total))
        years, rest = divmod(total, SECONDS_PER_YEAR)
        months, rest = divmod(rest, SECONDS_PER_MONTH)
        days, rest = divmod(rest, SECONDS_PER_DAY)
        hours, rest = divmod(rest, SECONDS_PER_HOUR)
        minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)
        return cls(years, months, days, hours, minutes, seconds)

    def to_dict(self):
        return asdict(self)


def whole_seconds(elapsed_ns: int) -> int:
    return max(0, elapsed_ns) // NS_PER_SEC
