import httpx
import structlog

from sessionguard.core.core import Service
from sessionguard.core.modules.logout.models import LogoutReason
from sessionguard.core.modules.session.models import Credential
from sessionguard.core.ui import NoticeLevel

logger = structlog.get_logger(__name__)

IDLE_TIMEOUT_NOTICE = "You have been signed out due to inactivity."


class LogoutService(Service):
    """Single choke point for ending a session."""

    async def force_logout(self, reason: LogoutReason) -> bool:
        """End the current session and leave protected content.

        Local cleanup happens before the first suspension point, so concurrent
        calls resolve to one teardown. Returns False if there was no session to end.
        """
        session_service = self.core.services.session
        snapshot = session_service.snapshot()
        if not session_service.logout():
            return False

        logger.info("forced_logout", reason=reason, session_id=snapshot.session_id)
        self.core.cache.clear()
        self.core.navigator.navigate(self.core.config.landing_path, replace=True)
        if reason is LogoutReason.IDLE_TIMEOUT:
            self.core.notifier.notify(NoticeLevel.WARNING, IDLE_TIMEOUT_NOTICE)

        await self._notify_server(snapshot.credential)
        return True

    async def _notify_server(self, credential: Credential | None) -> None:
        """Best-effort server logout. Failures never undo the local sign-out."""
        if credential is None:
            return
        try:
            response = await self.http.post(
                self.core.config.logout_path, headers={"Authorization": f"Bearer {credential}"}
            )
        except httpx.HTTPError as e:
            logger.warning("server_logout_failed", error=str(e))
            return
        if response.is_error:
            logger.debug("server_logout_rejected", status_code=response.status_code)
