"""Headless runner keeping one session monitored until it ends."""

import asyncio

import structlog

from sessionguard.app import App
from sessionguard.config import Config

logger = structlog.get_logger(__name__)


async def monitor(app: App, config: Config) -> None:
    async with app.lifespan():
        if not app.is_authenticated:
            if config.email is None or config.password is None:
                logger.error("credentials_missing")
                return
            await app.login(config.email, config.password)
        await app.wait_signed_out()
        logger.info("monitor_finished")


def run_monitor(app: App, config: Config) -> None:
    """Run the monitor until the session ends or the process is interrupted."""
    try:
        asyncio.run(monitor(app, config))
    except KeyboardInterrupt:
        logger.info("monitor_interrupted")
