"""Logging bootstrap for the worklens CLI."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Route worklens output through the root logger.

    ``main`` calls this at INFO before parsing arguments and again with
    ``force=True`` at DEBUG for ``--verbose``; without ``force`` a second call
    leaves the existing handlers alone.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
