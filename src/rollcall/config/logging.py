"""Logging setup for the command line."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send log records to stderr with a short timestamp.

    Library modules only emit through ``getLogger(__name__)``; the CLI calls this
    once before running a command.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    logging.getLogger("alembic.runtime.migration").setLevel(max(level, logging.WARNING))
