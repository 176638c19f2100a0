from datetime import timedelta

import structlog

from sessionguard.core.core import Service
from sessionguard.core.modules.warning.models import WarningView

logger = structlog.get_logger(__name__)


class WarningService(Service):
    """Non-blocking expiry warning with extend and dismiss actions.

    Does not de-duplicate by itself; the expiry service's latch decides when to show.
    """

    _visible: WarningView | None = None

    @property
    def visible(self) -> WarningView | None:
        return self._visible

    def show(self, remaining: timedelta) -> WarningView:
        view = WarningView.from_remaining(remaining)
        self._visible = view
        self.core.notifier.show_warning(view)
        logger.info("session_warning_shown", remaining=view.label)
        return view

    def hide(self) -> None:
        if self._visible is None:
            return
        self._visible = None
        self.core.notifier.hide_warning()

    def dismiss(self) -> None:
        """Hide the warning. The idle countdown keeps running."""
        self.hide()
        logger.debug("session_warning_dismissed")

    async def extend(self) -> bool:
        """Ask the server to observe activity and report the new idle budget.

        The new expiry is never guessed locally; it comes from the status response.
        """
        status = await self.core.services.expiry.reconcile()
        extended = status is not None and status.is_active
        if not extended:
            logger.warning("session_extend_failed")
        return extended
