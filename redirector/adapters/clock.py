from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_epoch(self) -> int:
        return int(self.now_utc().timestamp())

    def now_millis(self) -> int:
        return int(self.now_utc().timestamp() * 1000)


class FixedClock:
    """Clock pinned to a given epoch second - useful for tests and replays."""

    def __init__(self, epoch_seconds: int) -> None:
        self.epoch_seconds = epoch_seconds

    def now_utc(self) -> datetime:
        return datetime.fromtimestamp(self.epoch_seconds, UTC)

    def now_epoch(self) -> int:
        return self.epoch_seconds

    def now_millis(self) -> int:
        return self.epoch_seconds * 1000

    def advance(self, seconds: int) -> None:
        self.epoch_seconds += seconds
