"""curses front end for the dashboard."""
from __future__ import annotations

import curses
import shlex
import subprocess
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import questionary

from .app import (
    MENU_ITEMS,
    AppState,
    Context,
    Key,
    TableSource,
    View,
    handle_key,
)
from .config import Config
from .errors import EditorError
from .logging_setup import get_logger
from .report import fmt_amount, net_line
from .scroll import column_widths, visible_slice
from .services import Aggregator, FileCatalog
from .tables import (
    CYBER_MIN_COLUMNS,
    DEFAULT_CYBER,
    DEFAULT_TODO,
    TODO_MIN_COLUMNS,
)
from .weather import WeatherFetcher, weather_fetcher_for

logger = get_logger("termdash.cli")

POLL_MS = 250

TITLE = "Jeek!"
MOTTO = "Exist before meaning, feel yourself, embrace imperfection."

MENU_HELP = "jk -- move, Enter -- select, q -- exit"
TABLE_HELP = "q -- back to menu | e -- edit | r -- refresh | jk -- scroll"
BILL_HELP = "q -- back | r -- refresh | a -- analyze | x -- export | jk -- scroll"

KEY_BINDINGS = {
    curses.KEY_UP: Key.UP,
    ord("k"): Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    ord("j"): Key.DOWN,
    curses.KEY_ENTER: Key.SELECT,
    10: Key.SELECT,
    13: Key.SELECT,
    ord("q"): Key.QUIT,
    27: Key.QUIT,
    ord("e"): Key.EDIT,
    ord("r"): Key.REFRESH,
    ord("a"): Key.ANALYZE,
    ord("x"): Key.EXPORT,
}


def translate_key(ch: int) -> Key | None:
    return KEY_BINDINGS.get(ch)


@contextmanager
def temp_cursor(state: int):
    """Temporarily set cursor visibility and restore on exit."""

    prev = None
    try:
        prev = curses.curs_set(state)
    except curses.error:  # pragma: no cover - some terminals
        prev = None
    try:
        yield
    finally:
        if prev is not None:
            try:
                curses.curs_set(prev)
            except curses.error:  # pragma: no cover - cleanup best effort
                pass


@contextmanager
def keypad_mode(win):
    """Enable keypad mode and ensure it is disabled afterwards."""

    try:
        win.keypad(True)
    except curses.error:  # pragma: no cover - fake windows
        pass
    try:
        yield
    finally:
        try:
            win.keypad(False)
        except curses.error:  # pragma: no cover - fake windows
            pass


@contextmanager
def suspended_terminal(stdscr):
    """Give the terminal to another program, then take it back.

    The curses screen is restored and cleared on every exit path.
    """

    try:
        curses.def_prog_mode()
        curses.endwin()
    except curses.error:  # pragma: no cover - not initialised
        pass
    try:
        yield
    finally:
        try:
            curses.reset_prog_mode()
        except curses.error:  # pragma: no cover - not initialised
            pass
        try:
            stdscr.clear()
            stdscr.refresh()
        except curses.error:
            pass


def open_in_editor(path: Path, editor: str) -> None:
    try:
        argv = shlex.split(editor)
    except ValueError as exc:
        raise EditorError(f"bad editor command {editor!r}: {exc}") from exc
    if not argv:
        raise EditorError("no editor configured")
    cmd = argv + [str(path)]
    try:
        result = subprocess.run(cmd, check=False)
    except FileNotFoundError as exc:
        raise EditorError(f"editor not found: {cmd[0]}") from exc
    except OSError as exc:
        raise EditorError(f"cannot run {cmd[0]}: {exc}") from exc
    if result.returncode != 0:
        raise EditorError(f"{cmd[0]} exited with status {result.returncode}")


def ask_directory(default: Path) -> Path | None:
    """Blocking prompt for the report directory; ``None`` when cancelled."""
    answer = questionary.path(
        "Export report to directory:",
        default=str(default),
        only_directories=True,
    ).ask()
    if answer is None:
        return None
    answer = answer.strip()
    return Path(answer) if answer else Path(default)


def _addnstr(win, y: int, x: int, text: str, n: int, attr=curses.A_NORMAL) -> None:
    if n <= 0:
        return
    try:
        win.addnstr(y, x, text, n, attr)
    except curses.error:
        pass


def _draw_header(stdscr, text: str, w: int, attr=curses.A_BOLD) -> None:
    head_x = max(0, (w - len(text)) // 2)
    _addnstr(stdscr, 0, head_x, text, w - head_x, attr)


def _draw_footer(stdscr, h: int, w: int, left: str, right: str = "") -> None:
    _addnstr(stdscr, h - 1, 0, left, w - 1)
    if right:
        _addnstr(stdscr, h - 1, max(0, w - 1 - len(right)), right, len(right))


def format_row(row, widths: list[int]) -> str:
    cells = []
    for idx, width in enumerate(widths):
        cell = row[idx] if idx < len(row) else ""
        if len(cell) > width:
            cell = cell[: max(0, width - 1)] + "~"
        cells.append(f"{cell:<{width}}")
    return " | ".join(cells)


def draw_menu(stdscr, state: AppState, weather_text: str | None) -> None:
    h, w = stdscr.getmaxyx()
    h = max(1, h)
    w = max(1, w)
    _draw_header(stdscr, f"{TITLE}  {MOTTO}", w)
    for i, item in enumerate(MENU_ITEMS):
        selected = i == state.selected
        marker = "→ " if selected else "  "
        attr = curses.A_REVERSE | curses.A_BOLD if selected else curses.A_NORMAL
        _addnstr(stdscr, 2 + i, 2, f"{marker}{i} : {item.title} ", w - 3, attr)
    right = weather_text or date.today().isoformat()
    _draw_footer(stdscr, h, w, state.message or MENU_HELP, right)


def draw_table(stdscr, state: AppState, source: TableSource, config: Config) -> None:
    h, w = stdscr.getmaxyx()
    h = max(1, h)
    w = max(1, w)
    _draw_header(stdscr, f"{source.title} List", w)
    visible = max(0, h - 3)
    if not state.rows:
        _addnstr(stdscr, 2, 2, f"No {source.title} items found", w - 3)
    else:
        widths = column_widths(state.rows, config.column_min_width, config.column_max_width)
        window = visible_slice(state.rows, state.scroll.offset, visible)
        for i, row in enumerate(window):
            line_idx = state.scroll.offset + i
            attr = curses.A_BOLD if line_idx == 0 else curses.A_NORMAL
            _addnstr(stdscr, 2 + i, 0, format_row(row, widths), w - 1, attr)
    pos = f"{state.scroll.offset + 1}/{len(state.rows)}" if state.rows else "0/0"
    _draw_footer(stdscr, h, w, state.message or TABLE_HELP, pos)


def draw_bill(stdscr, state: AppState, ctx: Context) -> None:
    h, w = stdscr.getmaxyx()
    h = max(1, h)
    w = max(1, w)
    _draw_header(stdscr, "BILL", w)
    aggregate = ctx.aggregator.aggregate()
    catalog = list(ctx.catalog)
    processed = ctx.aggregator.processed_paths()
    pending = sum(1 for p in catalog if p not in processed)
    _addnstr(
        stdscr,
        1,
        0,
        f"files: {len(catalog)}  pending: {pending}  directory: {ctx.catalog.directory}",
        w - 1,
    )
    _addnstr(
        stdscr,
        2,
        0,
        f"Income: {fmt_amount(aggregate.total_income)}  "
        f"Expense: {fmt_amount(aggregate.total_expense)}  {net_line(aggregate)}",
        w - 1,
        curses.A_BOLD,
    )
    visible = max(0, h - 5)
    if not catalog:
        _addnstr(stdscr, 4, 2, "No bill files found", w - 3)
    for i, path in enumerate(visible_slice(catalog, state.scroll.offset, visible)):
        mark = "[x]" if path in processed else "[ ]"
        _addnstr(stdscr, 4 + i, 0, f"{mark} {path.name}", w - 1)
    pos = f"{state.scroll.offset + 1}/{len(catalog)}" if catalog else "0/0"
    _draw_footer(stdscr, h, w, state.message or BILL_HELP, pos)


def draw(stdscr, state: AppState, ctx: Context, config: Config, weather_text=None) -> None:
    stdscr.erase()
    if state.view is View.MAIN_MENU:
        draw_menu(stdscr, state, weather_text)
    elif state.view is View.BILL:
        draw_bill(stdscr, state, ctx)
    else:
        draw_table(stdscr, state, ctx.sources[state.view], config)
    stdscr.refresh()


def run(
    stdscr,
    state: AppState,
    ctx: Context,
    config: Config,
    weather: WeatherFetcher | None = None,
) -> None:
    """Render, poll for one key with a timeout, repeat until quit."""

    stdscr.timeout(POLL_MS)
    weather_text = None
    while state.running:
        if weather is not None:
            weather.maybe_start()
            weather_text = weather.poll()
        if state.force_redraw:
            stdscr.clear()
            state.force_redraw = False
        draw(stdscr, state, ctx, config, weather_text)

        ch = stdscr.getch()
        if ch == -1:
            continue
        if ch == curses.KEY_RESIZE:
            curses.update_lines_cols()
            curses.resize_term(0, 0)
            stdscr.clearok(True)
            continue
        key = translate_key(ch)
        if key is None:
            continue
        handle_key(state, ctx, key)


def build_sources(config: Config) -> dict[View, TableSource]:
    return {
        View.TODO: TableSource(
            "TODO", Path(config.todo_file_path), DEFAULT_TODO, TODO_MIN_COLUMNS
        ),
        View.CYBER: TableSource(
            "CYBER RESOURCE", Path(config.cyber_file_path), DEFAULT_CYBER, CYBER_MIN_COLUMNS
        ),
    }


def build_context(stdscr, config: Config) -> Context:
    def edit(path: Path) -> None:
        with suspended_terminal(stdscr):
            open_in_editor(path, config.editor)

    def prompt_directory(default: Path) -> Path | None:
        with suspended_terminal(stdscr):
            return ask_directory(default)

    return Context(
        sources=build_sources(config),
        aggregator=Aggregator(FileCatalog(config.bill_directory)),
        edit=edit,
        ask_directory=prompt_directory,
    )


def main(stdscr, config: Config | None = None) -> None:
    config = config or Config()
    with temp_cursor(0), keypad_mode(stdscr):
        try:
            curses.use_default_colors()
        except curses.error:  # pragma: no cover - terminals without color
            pass
        ctx = build_context(stdscr, config)
        logger.info("Dashboard started, bills in %s", ctx.catalog.directory)
        run(stdscr, AppState(), ctx, config, weather_fetcher_for(config))
        logger.info("Dashboard closed")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    curses.wrapper(main)
