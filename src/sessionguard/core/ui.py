"""Collaborators owned by the hosting UI: notifications, navigation, caches, persistence.

Default implementations only log, so the core runs headless.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from sessionguard.core.modules.session.models import PersistedSession
    from sessionguard.core.modules.warning.models import WarningView

logger = structlog.get_logger(__name__)


class NoticeLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    def show_warning(self, view: "WarningView") -> None: ...

    def hide_warning(self) -> None: ...

    def notify(self, level: NoticeLevel, message: str) -> None: ...


class Navigator(Protocol):
    def navigate(self, path: str, *, replace: bool) -> None: ...


class CacheClearer(Protocol):
    def clear(self) -> None: ...


class SessionPersistence(Protocol):
    def save(self, persisted: "PersistedSession") -> None: ...

    def clear(self) -> None: ...


class LogNotifier:
    def show_warning(self, view: "WarningView") -> None:
        logger.warning("session_expiring_soon", remaining=view.label)

    def hide_warning(self) -> None:
        logger.debug("session_warning_hidden")

    def notify(self, level: NoticeLevel, message: str) -> None:
        logger.info("notice", level=level, message=message)


class LogNavigator:
    def navigate(self, path: str, *, replace: bool) -> None:
        logger.info("navigate", path=path, replace=replace)


class LogCacheClearer:
    def clear(self) -> None:
        logger.debug("cache_cleared")


class NullPersistence:
    def save(self, persisted: "PersistedSession") -> None:
        pass

    def clear(self) -> None:
        pass
