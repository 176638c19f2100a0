from collections.abc import Callable
from datetime import UTC, datetime, timedelta

Clock = Callable[[], datetime]


def now() -> datetime:
    return datetime.now(UTC)


def split_remaining(remaining: timedelta) -> tuple[int, int]:
    """Round remaining time down to whole seconds and split into (minutes, seconds)."""
    total_seconds = max(int(remaining.total_seconds()), 0)
    return divmod(total_seconds, 60)
