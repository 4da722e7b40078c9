"""Module entry point for running the dashboard via ``python -m termdash``.

Settings and logging are prepared before curses takes over the terminal;
:func:`curses.wrapper` then initialises and tears down the curses session
around :func:`termdash.cli.main`.
"""

import curses
import os

from .cli import main
from .config import load_config
from .logging_setup import configure_logging


def entry_point() -> None:
    """Load settings and run the dashboard in a curses session."""
    # make a bare Esc register without the default one second delay
    os.environ.setdefault("ESCDELAY", "25")
    config = load_config()
    configure_logging(config.log_file)
    curses.wrapper(main, config)


if __name__ == "__main__":  # pragma: no cover - manual execution entry
    entry_point()
