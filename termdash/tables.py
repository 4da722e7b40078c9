"""Markdown pipe-table sources for the TODO and CYBER views."""
from __future__ import annotations

import re
from pathlib import Path

from .errors import SourceUnreadable
from .logging_setup import get_logger

logger = get_logger("termdash.tables")

Row = tuple[str, ...]

TODO_MIN_COLUMNS = 3
CYBER_MIN_COLUMNS = 2

DEFAULT_TODO = """\
# TODO List

| Task | Status | Priority |
|------|--------|----------|
| Learn | In progress | High |
| Finish project | Not started | Medium |
| Tidy notes | Not started | Low |
"""

DEFAULT_CYBER = """\
# Cyber Resources

| Name | Link | Note |
|------|------|------|
| Python docs | https://docs.python.org/3/ | Language reference |
| curses HOWTO | https://docs.python.org/3/howto/curses.html | Terminal UI |
"""

_SEPARATOR_RE = re.compile(r"^:?-+:?$")


def parse_table(text: str, min_columns: int) -> list[Row]:
    """Return the pipe-delimited rows of ``text`` with at least ``min_columns`` cells.

    A line counts only when, once stripped, it starts and ends with ``|``.
    Cells are stripped and empty ones are dropped. There is no escaping, so a
    ``|`` inside a cell splits it.
    """

    rows: list[Row] = []
    for line in text.splitlines():
        trimmed = line.strip()
        if not (trimmed.startswith("|") and trimmed.endswith("|")):
            continue
        cells = tuple(c.strip() for c in trimmed.split("|") if c.strip())
        if len(cells) >= min_columns:
            rows.append(cells)
    return rows


def is_separator(row: Row) -> bool:
    """True for the ``|---|:---:|`` line under a markdown header."""
    return bool(row) and all(_SEPARATOR_RE.match(c) for c in row)


def read_source(path: str | Path, default_content: str) -> str:
    """Read a table file, creating it with ``default_content`` when missing."""

    path = Path(path)
    try:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(default_content, encoding="utf-8")
            logger.info("Created %s with default content", path)
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnreadable(path, str(exc)) from exc


def load_rows(path: str | Path, default_content: str, min_columns: int) -> tuple[Row, ...]:
    return tuple(parse_table(read_source(path, default_content), min_columns))
