"""Session state models."""

from datetime import datetime
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Credential = NewType("Credential", str)


class WireModel(BaseModel):
    """Base for payloads exchanged with the API (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Role(StrEnum):
    ADMINISTRATOR = "Administrator"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    CLIENT = "Client"


class User(WireModel):
    """Signed-in user identity."""

    id: str
    email: str
    name: str
    role: Role
    is_email_verified: bool = False
    avatar_url: str | None = None


class SessionState(StrEnum):
    """Lifecycle state of the client session.

    Transitions:
    - ANONYMOUS -> ACTIVE on login
    - ACTIVE -> WARNING when the idle budget drops below the warning threshold
    - WARNING -> ACTIVE when the server reports an extended budget
    - ACTIVE/WARNING -> EXPIRED -> ANONYMOUS on idle expiry, 401 or explicit logout
    """

    ANONYMOUS = "anonymous"
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


class Session(BaseModel):
    """Immutable snapshot of the current session.

    User is present iff state is ACTIVE or WARNING.
    """

    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.ANONYMOUS
    user: User | None = None
    credential: Credential | None = None
    session_id: str | None = None
    last_activity_at: datetime | None = None
    idle_expiry_at: datetime | None = None
    is_checking: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.state in (SessionState.ACTIVE, SessionState.WARNING)

    def has_role(self, *roles: Role) -> bool:
        """Check whether the signed-in user holds one of the given roles."""
        return self.user is not None and self.user.role in roles


class PersistedSession(WireModel):
    """Session data that survives a reload, handed to the persistence collaborator."""

    user: User
    credential: Credential
    session_id: str


class LoginResponse(WireModel):
    credential: Credential
    user: User
    session_id: str


class SessionStatus(WireModel):
    """Response of the session-status endpoint.

    A missing idle_time_remaining_ms means the server gave no new budget;
    the current idle expiry is kept as is.
    """

    is_active: bool
    idle_time_remaining_ms: int | None = Field(default=None, ge=0)
    should_warn: bool = False
