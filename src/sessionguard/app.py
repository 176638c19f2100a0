from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from sessionguard.config import Config
from sessionguard.core.core import Core
from sessionguard.core.modules.logout.models import LogoutReason
from sessionguard.core.modules.session.models import LoginResponse, PersistedSession, Role, Session, User
from sessionguard.core.ui import CacheClearer, Navigator, Notifier, SessionPersistence
from sessionguard.utils import Clock, now


class App:
    """Facade for all client session operations, delegating to Core services."""

    def __init__(
        self,
        config: Config,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = now,
        notifier: Notifier | None = None,
        navigator: Navigator | None = None,
        cache: CacheClearer | None = None,
        persistence: SessionPersistence | None = None,
    ) -> None:
        self._core = Core(
            config,
            transport=transport,
            clock=clock,
            notifier=notifier,
            navigator=navigator,
            cache=cache,
            persistence=persistence,
        )

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Client lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def session(self) -> Session:
        """Snapshot of the current session."""
        return self._core.services.session.snapshot()

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    async def login(self, email: str, password: str) -> Session:
        """Authenticate and start monitoring the new session."""
        response = await self._core.services.activity.post(
            self._core.config.login_path, json={"email": email, "password": password}
        )
        login = LoginResponse.model_validate(response.json())
        return self._core.services.session.set_session(login.user, login.session_id, login.credential)

    async def restore(self, persisted: PersistedSession) -> Session:
        """Rehydrate a session saved before a reload."""
        return self._core.services.session.set_session(persisted.user, persisted.session_id, persisted.credential)

    async def logout(self) -> None:
        """Sign out at the user's request."""
        await self._core.services.logout.force_logout(LogoutReason.USER)

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated API request."""
        return await self._core.services.activity.request(method, path, **kwargs)

    async def extend_session(self) -> bool:
        """Handle the warning's extend action."""
        return await self._core.services.warning.extend()

    def dismiss_warning(self) -> None:
        """Handle the warning's dismiss action."""
        self._core.services.warning.dismiss()

    def update_user(self, **changes: Any) -> Session:
        """Apply profile changes to the signed-in user."""
        return self._core.services.session.update_user(**changes)

    def ensure_role(self, *roles: Role) -> User:
        """Check the signed-in user against the roles allowed for a view."""
        return self._core.services.access.ensure_role(*roles)

    async def wait_signed_out(self) -> None:
        """Wait until the session ends for any reason."""
        await self._core.services.session.wait_signed_out()
