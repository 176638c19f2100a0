import asyncio
from datetime import timedelta

import httpx
import structlog

from sessionguard.core.core import Service
from sessionguard.core.modules.activity.models import ActivityHints
from sessionguard.core.modules.logout.models import LogoutReason
from sessionguard.core.modules.session.models import Session, SessionState, SessionStatus
from sessionguard.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class ExpiryService(Service):
    """Keeps the local idle-expiry prediction in line with the server.

    While a session is authenticated two loops run:
    - the server loop polls the session-status endpoint (authoritative, may extend expiry)
    - the local loop re-derives remaining time from the last known expiry (never extends it)

    Both share one warning latch, so at most one warning is shown per stay below
    the threshold. Both loops belong to one generation and are cancelled together
    as soon as the session ends or changes.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        super().__init__(http)
        self._tasks: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._warning_latched = False

    @property
    def warning_latched(self) -> bool:
        return self._warning_latched

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def on_start(self) -> None:
        self.core.services.session.subscribe(self._on_transition)
        self.core.services.activity.subscribe_hints(self._on_hints)
        # A session restored before startup is monitored from the start
        if self.core.services.session.snapshot().is_authenticated:
            self._reset_warning()
            self._start_loops()

    async def on_stop(self) -> None:
        tasks = self._cancel_loops()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def reconcile(self) -> SessionStatus | None:
        """Run one server reconciliation.

        Returns the status applied, or None when the check failed or no session exists.
        Errors are logged and swallowed; a 401 has already ended the session.
        """
        session_service = self.core.services.session
        snapshot = session_service.snapshot()
        if not snapshot.is_authenticated:
            return None

        session_service.set_checking(True)
        try:
            response = await self.core.services.activity.get(self.core.config.session_status_path)
            status = SessionStatus.model_validate(response.json())
        except AuthenticationError:
            return None
        except Exception as e:
            logger.warning("session_status_failed", error=str(e), exc_info=True)
            return None
        finally:
            session_service.set_checking(False)

        # A response that outlived its session must not touch the next one
        if session_service.snapshot().session_id != snapshot.session_id:
            logger.debug("stale_session_status_dropped", session_id=snapshot.session_id)
            return None

        await self.apply_status(status)
        return status

    async def apply_status(self, status: SessionStatus) -> None:
        """Apply a session-status response: expiry first, then the warning decision."""
        session_service = self.core.services.session
        if not status.is_active:
            await self.core.services.logout.force_logout(LogoutReason.IDLE_TIMEOUT)
            return

        if status.idle_time_remaining_ms is not None:
            session_service.update_idle_expiry(status.idle_time_remaining_ms)

        snapshot = session_service.snapshot()
        if status.should_warn:
            self._raise_warning(snapshot)
        elif snapshot.state is SessionState.ACTIVE:
            self._warning_latched = False

    async def check_local(self) -> None:
        """Re-derive remaining idle time from the last known expiry."""
        session_service = self.core.services.session
        snapshot = session_service.snapshot()
        if not snapshot.is_authenticated or snapshot.idle_expiry_at is None:
            return

        remaining = snapshot.idle_expiry_at - self.core.clock()
        if remaining <= timedelta(0):
            logger.info("idle_expiry_reached", session_id=snapshot.session_id)
            await self.core.services.logout.force_logout(LogoutReason.IDLE_TIMEOUT)
            return

        if remaining <= timedelta(milliseconds=self.core.config.warning_threshold_ms):
            self._raise_warning(session_service.enter_warning())

    def _raise_warning(self, snapshot: Session) -> None:
        if self._warning_latched:
            return
        self._warning_latched = True
        remaining = timedelta(0)
        if snapshot.idle_expiry_at is not None:
            remaining = snapshot.idle_expiry_at - self.core.clock()
        self.core.services.warning.show(remaining)

    def _on_transition(self, before: Session, after: Session) -> None:
        if not after.is_authenticated:
            self._cancel_loops()
            self._reset_warning()
        elif not before.is_authenticated or before.session_id != after.session_id:
            self._reset_warning()
            self._start_loops()
        elif before.state is SessionState.WARNING and after.state is SessionState.ACTIVE:
            self._reset_warning()

    def _on_hints(self, hints: ActivityHints) -> None:
        # Hints are telemetry only, the server loop decides
        logger.debug("session_hints_observed", warning=hints.warning, expires_in_ms=hints.expires_in_ms)

    def _reset_warning(self) -> None:
        self._warning_latched = False
        self.core.services.warning.hide()

    def _start_loops(self) -> None:
        self._cancel_loops()
        generation = self._generation
        self._tasks = {
            asyncio.create_task(self._server_loop(generation)),
            asyncio.create_task(self._local_loop(generation)),
        }
        logger.debug("expiry_loops_started", generation=generation)

    def _cancel_loops(self) -> set[asyncio.Task[None]]:
        """Invalidate the running generation and cancel its loops.

        The calling task, if it is one of the loops, is left to exit on its own guard.
        """
        self._generation += 1
        current = asyncio.current_task() if self._tasks else None
        tasks, self._tasks = self._tasks, set()
        for task in tasks:
            if task is not current:
                task.cancel()
        return {task for task in tasks if task is not current}

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.core.services.session.snapshot().is_authenticated

    async def _server_loop(self, generation: int) -> None:
        interval = self.core.config.status_check_interval_seconds
        while self._is_current(generation):
            await self.reconcile()
            if not self._is_current(generation):
                break
            await asyncio.sleep(interval)

    async def _local_loop(self, generation: int) -> None:
        interval = self.core.config.local_check_interval_seconds
        while True:
            await asyncio.sleep(interval)
            if not self._is_current(generation):
                break
            await self.check_local()
