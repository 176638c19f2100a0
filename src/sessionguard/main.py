"""Entry point for the headless session monitor."""

from sessionguard.app import App
from sessionguard.config import Config
from sessionguard.logging import setup_logging
from sessionguard.runner import run_monitor


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_monitor(app, config)


if __name__ == "__main__":
    main()
