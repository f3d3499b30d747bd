"""Entry point: python -m openclaw_desk"""
from __future__ import annotations

import logging

from .app import DeskApp
from .config import load_config


def _configure_logging(log_path: str | None) -> None:
    # Textual owns the terminal, so logs only go to a file when one is configured.
    if not log_path:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_path,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Launch the OpenClaw desktop companion."""
    config = load_config()
    _configure_logging(config.log_path)
    app = DeskApp(config=config)
    app.run()


if __name__ == "__main__":
    main()
