"""
Whole-day date intervals used for delegation validity windows.
Both ends are inclusive.
"""

from dataclasses import dataclass
from datetime import date, datetime

from approvals.core.exceptions import ValidationError


@dataclass(frozen=True)
class DateInterval:
    """Closed interval [start, end] of calendar dates."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError(
                "invalid range",
                details={"start_date": self.start.isoformat(), "end_date": self.end.isoformat()},
            )

    @property
    def days(self) -> int:
        """Number of days covered, counting both ends."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def overlaps(a: DateInterval, b: DateInterval) -> bool:
    """True if the two closed intervals share at least one day."""
    return a.start <= b.end and b.start <= a.end


def contains_today(interval: DateInterval, now: date | datetime) -> bool:
    """True if the caller-supplied current date falls inside the interval."""
    today = now.date() if isinstance(now, datetime) else now
    return interval.contains(today)
