"""Logging setup shared by the CLI and embedding applications."""

import logging
import sys

from avactivity.core.config import get_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | None = None) -> None:
    """
    Configure application logging.

    Invariants:
    - Existing root handlers are removed so repeated calls do not duplicate output.
    - A single console handler writes to stderr so stdout stays clean for JSON output.
    - The level comes from the argument, else from Settings.log_level.
    """
    if level is None:
        level = get_config().log_level
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(level.upper())
    for h in root.handlers[:]:
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level.upper())
    console.setFormatter(formatter)
    root.addHandler(console)
