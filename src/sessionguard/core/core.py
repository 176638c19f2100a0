from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import httpx

from sessionguard.config import Config
from sessionguard.core.ui import (
    CacheClearer,
    LogCacheClearer,
    LogNavigator,
    LogNotifier,
    Navigator,
    Notifier,
    NullPersistence,
    SessionPersistence,
)
from sessionguard.utils import Clock, now

if TYPE_CHECKING:
    from sessionguard.core.modules.access.service import AccessService
    from sessionguard.core.modules.activity.service import ActivityService
    from sessionguard.core.modules.expiry.service import ExpiryService
    from sessionguard.core.modules.logout.service import LogoutService
    from sessionguard.core.modules.session.service import SessionService
    from sessionguard.core.modules.warning.service import WarningService


class Service:
    """Base class for services sharing the API client."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on client startup."""

    async def on_stop(self) -> None:
        """Cleanup service on client shutdown."""

    @property
    def core(self) -> Core:
        """Get the core client context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core client context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    session: SessionService
    activity: ActivityService
    logout: LogoutService
    warning: WarningService
    expiry: ExpiryService
    access: AccessService

    def __init__(self, http: httpx.AsyncClient) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._http = http

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - session must be first, expiry subscribes to it
        service_configs = [
            ("session", "sessionguard.core.modules.session.service", "SessionService"),
            ("activity", "sessionguard.core.modules.activity.service", "ActivityService"),
            ("logout", "sessionguard.core.modules.logout.service", "LogoutService"),
            ("warning", "sessionguard.core.modules.warning.service", "WarningService"),
            ("expiry", "sessionguard.core.modules.expiry.service", "ExpiryService"),
            ("access", "sessionguard.core.modules.access.service", "AccessService"),
        ]

        # Dynamically import and instantiate services
        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(http)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, API client, UI collaborators and all service instances."""

    config: Config
    http: httpx.AsyncClient
    clock: Clock
    notifier: Notifier
    navigator: Navigator
    cache: CacheClearer
    persistence: SessionPersistence
    services: Services

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
        """Initialize core with config, HTTP client, collaborators and auto-register services."""
        self.config = config
        self.http = httpx.AsyncClient(base_url=config.api_base_url, transport=transport)
        self.clock = clock
        self.notifier = notifier or LogNotifier()
        self.navigator = navigator or LogNavigator()
        self.cache = cache or LogCacheClearer()
        self.persistence = persistence or NullPersistence()
        self.services = Services(self.http)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage client lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the HTTP client."""
        await self.services.stop_all()
        await self.http.aclose()
