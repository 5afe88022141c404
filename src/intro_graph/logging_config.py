"""Logging setup for IntroGraph entry points."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once, rendering records through rich on stderr.

    Library modules only call ``logging.getLogger(__name__)``; entry points
    (the CLI) call this once. Pass ``force=True`` to reconfigure in tests.
    """
    if isinstance(level, str):
        level = level.upper()

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=force,
    )
