"""Root logger setup for the CLI."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _level_from_env(default: int) -> int:
    name = os.getenv("HRISYNC_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelNamesMapping().get(name)
    return default if level is None else level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger once.

    ``level`` wins over ``HRISYNC_LOG_LEVEL``, which wins over INFO. Unknown level
    names fall back to INFO. Pass ``force=True`` to replace existing handlers.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_env(logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
