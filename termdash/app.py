"""Dashboard state and key handling.

Everything the event loop mutates lives in one :class:`AppState`. Key
handlers take that state plus a :class:`Context` of collaborators, so the
transitions can be driven without a terminal.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from . import report
from .errors import DashboardError, NothingPending
from .logging_setup import get_logger
from .scroll import ScrollState
from .services import Aggregator
from .tables import Row, is_separator, load_rows

logger = get_logger("termdash.app")


class View(enum.Enum):
    MAIN_MENU = "main_menu"
    TODO = "todo"
    CYBER = "cyber"
    BILL = "bill"


class MenuItem(enum.Enum):
    TODO = "TODO"
    BILL = "BILL"
    CYBER = "CYBER RESOURCE"

    @property
    def title(self) -> str:
        return self.value


MENU_ITEMS = (MenuItem.TODO, MenuItem.BILL, MenuItem.CYBER)

MENU_TARGETS = {
    MenuItem.TODO: View.TODO,
    MenuItem.CYBER: View.CYBER,
    MenuItem.BILL: View.BILL,
}


class Key(enum.Enum):
    UP = "up"
    DOWN = "down"
    SELECT = "select"
    QUIT = "quit"
    EDIT = "edit"
    REFRESH = "refresh"
    ANALYZE = "analyze"
    EXPORT = "export"


@dataclass(frozen=True)
class TableSource:
    title: str
    path: Path
    default_content: str
    min_columns: int

    def load(self) -> tuple[Row, ...]:
        rows = load_rows(self.path, self.default_content, self.min_columns)
        return tuple(r for r in rows if not is_separator(r))


@dataclass
class AppState:
    view: View = View.MAIN_MENU
    selected: int = 0
    scroll: ScrollState = field(default_factory=ScrollState)
    rows: tuple[Row, ...] = ()
    message: str | None = None
    force_redraw: bool = False
    running: bool = True

    @property
    def selected_item(self) -> MenuItem:
        return MENU_ITEMS[self.selected]


@dataclass
class Context:
    """Collaborators the key handlers call into.

    ``edit`` and ``ask_directory`` hand the terminal to another program and
    return once the dashboard owns it again.
    """

    sources: dict[View, TableSource]
    aggregator: Aggregator
    edit: Callable[[Path], None]
    ask_directory: Callable[[Path], Path | None]

    @property
    def catalog(self):
        return self.aggregator.catalog


def handle_key(state: AppState, ctx: Context, key: Key) -> None:
    if state.view is View.MAIN_MENU:
        _on_menu(state, ctx, key)
    elif state.view is View.BILL:
        _on_bill(state, ctx, key)
    else:
        _on_table(state, ctx, key)


def _on_menu(state: AppState, ctx: Context, key: Key) -> None:
    if key is Key.QUIT:
        state.running = False
    elif key is Key.UP:
        state.selected = (state.selected - 1) % len(MENU_ITEMS)
        state.message = None
    elif key is Key.DOWN:
        state.selected = (state.selected + 1) % len(MENU_ITEMS)
        state.message = None
    elif key is Key.SELECT:
        target = MENU_TARGETS[state.selected_item]
        if target is View.BILL:
            _open_bill(state, ctx)
        else:
            _open_table(state, ctx, target)


def _open_table(state: AppState, ctx: Context, view: View) -> None:
    source = ctx.sources[view]
    try:
        rows = source.load()
    except DashboardError as exc:
        state.message = f"Error reading {source.title} file: {exc}"
        return
    state.rows = rows
    state.view = view
    state.scroll.reset()
    state.message = None


def _open_bill(state: AppState, ctx: Context) -> None:
    try:
        ctx.catalog.refresh()
    except DashboardError as exc:
        state.message = f"Error reading bill directory: {exc}"
        return
    state.view = View.BILL
    state.scroll.reset()
    state.rows = ()
    state.message = None


def back_to_menu(state: AppState) -> None:
    state.view = View.MAIN_MENU
    state.scroll.reset()
    state.rows = ()


def _on_table(state: AppState, ctx: Context, key: Key) -> None:
    source = ctx.sources[state.view]
    if key is Key.QUIT:
        back_to_menu(state)
        state.message = None
    elif key is Key.UP:
        state.scroll.up()
    elif key is Key.DOWN:
        state.scroll.down(len(state.rows))
    elif key is Key.REFRESH:
        try:
            state.rows = source.load()
        except DashboardError as exc:
            state.message = f"Refresh failed: {exc}"
        else:
            state.scroll.clamp(len(state.rows))
            state.message = None
    elif key is Key.EDIT:
        state.force_redraw = True
        try:
            ctx.edit(source.path)
            state.rows = source.load()
        except DashboardError as exc:
            logger.warning("Editing %s failed: %s", source.path, exc)
            back_to_menu(state)
            state.message = f"Edit failed: {exc}"
        else:
            state.scroll.clamp(len(state.rows))
            state.message = None


def _on_bill(state: AppState, ctx: Context, key: Key) -> None:
    if key is Key.QUIT:
        back_to_menu(state)
        state.message = None
    elif key is Key.UP:
        state.scroll.up()
    elif key is Key.DOWN:
        state.scroll.down(len(ctx.catalog))
    elif key is Key.REFRESH:
        try:
            ctx.catalog.refresh()
        except DashboardError as exc:
            state.message = f"Refresh failed: {exc}"
            return
        state.scroll.clamp(len(ctx.catalog))
        state.message = (
            f"{len(ctx.catalog)} file(s), {ctx.aggregator.pending_count()} pending"
        )
    elif key is Key.ANALYZE:
        analyze(state, ctx)
    elif key is Key.EXPORT:
        export_report(state, ctx)


def analyze(state: AppState, ctx: Context) -> None:
    try:
        count = ctx.aggregator.ingest()
    except NothingPending as exc:
        state.message = str(exc)
        return
    except DashboardError as exc:
        state.message = f"Analyze failed: {exc}"
        return
    state.message = (
        f"Analyzed {count} file(s); {report.net_line(ctx.aggregator.aggregate())}"
    )


def export_report(state: AppState, ctx: Context) -> None:
    if ctx.aggregator.is_empty():
        state.message = "Nothing to export, analyze some bills first"
        return
    state.force_redraw = True
    try:
        directory = ctx.ask_directory(ctx.catalog.directory)
    except DashboardError as exc:
        state.message = f"Export failed: {exc}"
        return
    if directory is None:
        state.message = "Export cancelled"
        return
    try:
        written = report.export(ctx.aggregator.aggregate(), directory)
    except DashboardError as exc:
        state.message = f"Export failed: {exc}"
        return
    state.message = f"Wrote {written} report(s) to {directory}"
