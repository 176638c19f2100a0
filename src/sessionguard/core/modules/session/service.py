import asyncio
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import httpx
import structlog

from sessionguard.core.core import Service
from sessionguard.core.modules.session.models import Credential, PersistedSession, Session, SessionState, User

logger = structlog.get_logger(__name__)

TransitionListener = Callable[[Session, Session], None]


class SessionService(Service):
    """Single owner of the session snapshot.

    Every mutation replaces the whole snapshot, readers only ever see immutable
    copies. Listeners are notified synchronously with (before, after) whenever
    the state or the session identity changes.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        super().__init__(http)
        self._session = Session()
        self._listeners: list[TransitionListener] = []
        self._signed_out = asyncio.Event()
        self._signed_out.set()

    def snapshot(self) -> Session:
        return self._session

    def subscribe(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def set_session(self, user: User, session_id: str, credential: Credential) -> Session:
        """Start a new authenticated session in ACTIVE state."""
        current_time = self.core.clock()
        session = Session(
            state=SessionState.ACTIVE,
            user=user,
            credential=credential,
            session_id=session_id,
            last_activity_at=current_time,
            idle_expiry_at=current_time + timedelta(milliseconds=self.core.config.default_idle_timeout_ms),
        )
        structlog.contextvars.bind_contextvars(session_id=session_id)
        self._replace(session)
        self._signed_out.clear()
        self.core.persistence.save(PersistedSession(user=user, credential=credential, session_id=session_id))
        logger.info("session_started", session_id=session_id, role=user.role)
        return session

    def record_activity(self) -> None:
        """Mark an outgoing request. Does not extend the idle expiry."""
        self._replace(self._session.model_copy(update={"last_activity_at": self.core.clock()}))

    def update_idle_expiry(self, remaining_ms: int) -> Session:
        """Apply a server-confirmed idle budget."""
        if not self._session.is_authenticated:
            return self._session

        update: dict[str, Any] = {"idle_expiry_at": self.core.clock() + timedelta(milliseconds=remaining_ms)}
        if remaining_ms < self.core.config.warning_threshold_ms:
            update["state"] = SessionState.WARNING
        else:
            update["state"] = SessionState.ACTIVE
        self._replace(self._session.model_copy(update=update))
        return self._session

    def enter_warning(self) -> Session:
        """Move ACTIVE to WARNING without touching the idle expiry."""
        if self._session.state is SessionState.ACTIVE:
            self._replace(self._session.model_copy(update={"state": SessionState.WARNING}))
        return self._session

    def set_checking(self, is_checking: bool) -> None:
        if self._session.is_checking != is_checking:
            self._replace(self._session.model_copy(update={"is_checking": is_checking}))

    def update_user(self, **changes: Any) -> Session:
        """Partially update the signed-in user profile."""
        if self._session.user is None:
            return self._session
        user = User.model_validate({**self._session.user.model_dump(), **changes})
        self._replace(self._session.model_copy(update={"user": user}))
        return self._session

    def logout(self) -> bool:
        """Move to EXPIRED then ANONYMOUS, clearing all session data.

        Returns False when there was no session to end.
        """
        if self._session.state is SessionState.ANONYMOUS:
            return False

        session_id = self._session.session_id
        self._replace(Session(state=SessionState.EXPIRED))
        self._replace(Session())
        self.core.persistence.clear()
        self._signed_out.set()
        logger.info("session_ended", session_id=session_id)
        structlog.contextvars.unbind_contextvars("session_id")
        return True

    async def wait_signed_out(self) -> None:
        """Wait until the store reaches ANONYMOUS."""
        await self._signed_out.wait()

    def _replace(self, session: Session) -> None:
        before, self._session = self._session, session
        if before.state is session.state and before.session_id == session.session_id:
            return
        logger.debug("session_transition", before=before.state, after=session.state)
        for listener in list(self._listeners):
            listener(before, session)
