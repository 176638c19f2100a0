from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ActivityHints(BaseModel):
    """Advisory session signals echoed by the server on ordinary responses.

    Non-binding: the session-status endpoint stays authoritative.
    """

    model_config = ConfigDict(frozen=True)

    warning: bool | None = None
    expires_in_ms: int | None = None
    observed_at: datetime | None = None
