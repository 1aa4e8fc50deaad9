"""Injectable time source.

Policy code never reads the wall clock itself; it receives ``now`` from a
``Clock`` so behaviour is reproducible under test.
"""

from datetime import UTC, date, datetime, timedelta, tzinfo


class Clock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """Clock pinned to a given instant."""

    def __init__(self, now: datetime) -> None:
        self._now = ensure_aware(now)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_utc(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(UTC)


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of ``value`` in the hotel's timezone."""
    return ensure_aware(value).astimezone(tz).date()


system_clock = Clock()
