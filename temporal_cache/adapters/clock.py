from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def timestamp(self) -> int:
        return int(self.now_utc().timestamp())


class FixedClock:
    """Clock pinned to one instant; advance() moves it forward."""

    def __init__(self, timestamp: int) -> None:
        self._timestamp = timestamp

    def now_utc(self) -> datetime:
        return datetime.fromtimestamp(self._timestamp, UTC)

    def timestamp(self) -> int:
        return self._timestamp

    def advance(self, seconds: int) -> None:
        self._timestamp += seconds
