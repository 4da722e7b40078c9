"""Runtime settings loaded from ``config.toml``."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import tomli

from .logging_setup import get_logger

logger = get_logger("termdash.config")

# Determine config path; allow override with environment variable for testing
CONFIG_FILE = Path(os.getenv("TERMDASH_CONFIG", "config.toml"))

DEFAULT_TEMPLATE = """\
# termdash settings
todo_file_path = "md/TODO.md"
cyber_file_path = "md/CYBER.md"
bill_directory = "bill"
editor = "nvim"

# leave empty to disable the weather line
weather_city = ""
weather_url = "https://wttr.in/{city}?format=3"
weather_refresh_seconds = 1800

log_file = "termdash.log"
column_min_width = 4
column_max_width = 40
"""


@dataclass
class Config:
    todo_file_path: str = "md/TODO.md"
    cyber_file_path: str = "md/CYBER.md"
    bill_directory: str = "bill"
    editor: str = "nvim"
    weather_city: str = ""
    weather_url: str = "https://wttr.in/{city}?format=3"
    weather_refresh_seconds: int = 1800
    log_file: str = "termdash.log"
    column_min_width: int = 4
    column_max_width: int = 40

    @classmethod
    def from_mapping(cls, data: dict) -> "Config":
        """Build a config from parsed TOML, ignoring unknown or mistyped keys."""

        cfg = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            expected = type(getattr(cfg, f.name))
            if expected is int and isinstance(value, bool):
                logger.warning("Ignoring %s: expected a number", f.name)
                continue
            if not isinstance(value, expected):
                logger.warning("Ignoring %s: expected %s", f.name, expected.__name__)
                continue
            setattr(cfg, f.name, value)
        return cfg

    @property
    def weather_enabled(self) -> bool:
        return bool(self.weather_city.strip())


def load_config(path: str | Path | None = None) -> Config:
    """Read settings from ``path``; fall back to defaults on any problem.

    A missing file is created from :data:`DEFAULT_TEMPLATE`. ``$EDITOR``
    replaces the editor when the file keeps the default one.
    """

    path = Path(path) if path is not None else CONFIG_FILE
    if not path.exists():
        try:
            path.write_text(DEFAULT_TEMPLATE, encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot write default config %s: %s", path, exc)
        cfg = Config()
    else:
        try:
            data = tomli.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read config %s, using defaults: %s", path, exc)
            cfg = Config()
        except tomli.TOMLDecodeError as exc:
            logger.warning("Invalid config %s, using defaults: %s", path, exc)
            cfg = Config()
        else:
            cfg = Config.from_mapping(data)

    env_editor = os.getenv("EDITOR")
    if env_editor and cfg.editor == Config.editor:
        cfg.editor = env_editor
    return cfg
