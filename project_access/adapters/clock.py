from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """Clock pinned to a fixed instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now_utc(self) -> datetime:
        return self.instant
