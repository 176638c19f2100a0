from datetime import timedelta

from pydantic import BaseModel, ConfigDict

from sessionguard.utils import split_remaining


class WarningView(BaseModel):
    """Remaining idle time as shown in the expiry warning."""

    model_config = ConfigDict(frozen=True)

    minutes: int
    seconds: int

    @classmethod
    def from_remaining(cls, remaining: timedelta) -> "WarningView":
        minutes, seconds = split_remaining(remaining)
        return cls(minutes=minutes, seconds=seconds)

    @property
    def label(self) -> str:
        return f"{self.minutes}:{self.seconds:02d}"
