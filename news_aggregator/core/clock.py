from datetime import datetime, timedelta, timezone
from typing import Tuple


class Clock:
    """Current-time provider. All timestamps are naive UTC, matching the stored columns."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def today_bounds(self) -> Tuple[datetime, datetime]:
        start = self.now().replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=1) - timedelta(microseconds=1)

    def week_bounds(self) -> Tuple[datetime, datetime]:
        """Monday 00:00 through Sunday 23:59:59.999999 of the current week."""
        today_start, _ = self.today_bounds()
        start = today_start - timedelta(days=today_start.weekday())
        return start, start + timedelta(days=7) - timedelta(microseconds=1)


class FrozenClock(Clock):
    """Clock pinned to a fixed instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        self.instant = self.instant + timedelta(**kwargs)


_clock = Clock()


def get_clock() -> Clock:
    return _clock
