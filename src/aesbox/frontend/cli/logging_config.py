"""Lightweight logging setup for the TUI."""

from __future__ import annotations

import logging
import sys


def configure_logging(level: int = logging.INFO, filename: str | None = None) -> None:
    # Configure root logger once. Use a file while the TUI owns the terminal.
    if filename:
        target = {"filename": filename}
    else:
        target = {"stream": sys.stderr}
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        **target,
    )
