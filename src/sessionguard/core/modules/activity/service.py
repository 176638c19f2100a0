from collections.abc import Callable
from typing import Any

import httpx
import structlog

from sessionguard.core.core import Service
from sessionguard.core.modules.activity.models import ActivityHints
from sessionguard.core.modules.logout.models import LogoutReason
from sessionguard.errors import ApiError, AuthenticationError

logger = structlog.get_logger(__name__)

HintListener = Callable[[ActivityHints], None]


class ActivityService(Service):
    """Wraps every outgoing API request.

    Attaches the bearer credential, records user activity, exposes the server's
    advisory session hints and hands 401 responses to the logout service before
    the error reaches the caller.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        super().__init__(http)
        self._hints = ActivityHints()
        self._hint_listeners: list[HintListener] = []

    @property
    def last_hints(self) -> ActivityHints:
        return self._hints

    def subscribe_hints(self, listener: HintListener) -> None:
        self._hint_listeners.append(listener)

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an API request on behalf of the current session."""
        session_service = self.core.services.session
        snapshot = session_service.snapshot()

        headers = dict(kwargs.pop("headers", None) or {})
        if snapshot.credential is not None:
            headers["Authorization"] = f"Bearer {snapshot.credential}"
        session_service.record_activity()

        response = await self.http.request(method, path, headers=headers, **kwargs)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            # A late 401 from a previous session must not end the current one
            if session_service.snapshot().session_id == snapshot.session_id:
                await self.core.services.logout.force_logout(LogoutReason.UNAUTHORIZED)
            raise AuthenticationError("Invalid or expired session")
        if response.is_error:
            raise ApiError(response.status_code)

        self._observe_hints(response)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    def _observe_hints(self, response: httpx.Response) -> None:
        config = self.core.config
        raw_warning = response.headers.get(config.warning_header)
        raw_expires_in = response.headers.get(config.expires_in_header)
        if raw_warning is None and raw_expires_in is None:
            return

        expires_in_ms: int | None = None
        if raw_expires_in is not None:
            try:
                expires_in_ms = int(raw_expires_in)
            except ValueError:
                logger.debug("invalid_expires_in_header", value=raw_expires_in)

        self._hints = ActivityHints(
            warning=raw_warning.strip().lower() == "true" if raw_warning is not None else None,
            expires_in_ms=expires_in_ms,
            observed_at=self.core.clock(),
        )
        for listener in list(self._hint_listeners):
            listener(self._hints)
