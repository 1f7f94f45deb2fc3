from abc import (
    ABC,
    abstractmethod,
)
from datetime import (
    datetime,
    timedelta,
    timezone,
)


class Clock(ABC):
    """Source of the current time, swappable in tests."""

    @abstractmethod
    def now(self) -> datetime: ...

    def since(self, t: datetime) -> timedelta:
        return self.now() - t


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2023, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, t: datetime) -> None:
        self._now = t

    def add(self, d: timedelta) -> None:
        self._now += d
