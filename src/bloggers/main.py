"""Application entry point for the bloggers backend server."""

from bloggers.app import App
from bloggers.config import Config
from bloggers.logging import setup_logging
from bloggers.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App.from_config(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
