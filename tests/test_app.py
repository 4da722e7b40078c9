from pathlib import Path

import pytest

from tests.helpers import bank_record, write_bank_csv
from termdash import app
from termdash.app import AppState, Context, Key, TableSource, View
from termdash.errors import EditorError, ExportError
from termdash.tables import DEFAULT_CYBER, DEFAULT_TODO


@pytest.fixture
def sources(tmp_path):
    return {
        View.TODO: TableSource("TODO", tmp_path / "md" / "TODO.md", DEFAULT_TODO, 3),
        View.CYBER: TableSource("CYBER RESOURCE", tmp_path / "md" / "CYBER.md", DEFAULT_CYBER, 2),
    }


@pytest.fixture
def ctx(sources, aggregator):
    calls = {"edit": [], "ask": []}

    def edit(path):
        calls["edit"].append(path)

    def ask_directory(default):
        calls["ask"].append(default)
        return default / "reports"

    context = Context(
        sources=sources, aggregator=aggregator, edit=edit, ask_directory=ask_directory
    )
    context.calls = calls
    return context


def press(state, ctx, *keys):
    for key in keys:
        app.handle_key(state, ctx, key)


def test_menu_wraps_around(ctx):
    state = AppState()
    press(state, ctx, Key.UP)
    assert state.selected == len(app.MENU_ITEMS) - 1
    press(state, ctx, Key.DOWN)
    assert state.selected == 0
    press(state, ctx, Key.DOWN, Key.DOWN, Key.DOWN)
    assert state.selected == 0


def test_menu_quit_stops_loop(ctx):
    state = AppState()
    press(state, ctx, Key.QUIT)
    assert state.running is False


def test_menu_ignores_view_keys(ctx):
    state = AppState()
    press(state, ctx, Key.EDIT, Key.ANALYZE, Key.EXPORT, Key.REFRESH)
    assert state.view is View.MAIN_MENU
    assert ctx.calls["edit"] == []


def test_select_todo_loads_rows_and_resets_scroll(ctx):
    state = AppState()
    state.scroll.offset = 4
    press(state, ctx, Key.SELECT)
    assert state.view is View.TODO
    assert state.scroll.offset == 0
    assert state.rows[0] == ("Task", "Status", "Priority")
    # separator line is not shown
    assert all(not r[0].startswith("-") for r in state.rows)


def test_select_cyber(ctx):
    state = AppState(selected=app.MENU_ITEMS.index(app.MenuItem.CYBER))
    press(state, ctx, Key.SELECT)
    assert state.view is View.CYBER
    assert state.rows[0] == ("Name", "Link", "Note")


def test_select_table_with_unreadable_source_stays_on_menu(ctx, sources):
    sources[View.TODO].path.mkdir(parents=True)
    state = AppState()
    press(state, ctx, Key.SELECT)
    assert state.view is View.MAIN_MENU
    assert state.message.startswith("Error reading TODO file")


def test_table_scroll_and_back(ctx, sources):
    path = sources[View.TODO].path
    path.parent.mkdir(parents=True)
    path.write_text(
        "\n".join(f"| task {i} | open | low |" for i in range(14)), encoding="utf-8"
    )
    state = AppState()
    press(state, ctx, Key.SELECT)
    press(state, ctx, *[Key.DOWN] * 10)
    assert state.scroll.offset == 4
    press(state, ctx, Key.UP)
    assert state.scroll.offset == 3
    press(state, ctx, Key.QUIT)
    assert state.view is View.MAIN_MENU
    assert state.scroll.offset == 0


def test_table_refresh_rereads_source(ctx, sources):
    state = AppState()
    press(state, ctx, Key.SELECT)
    sources[View.TODO].path.write_text("| a | b | c |\n", encoding="utf-8")
    press(state, ctx, Key.REFRESH)
    assert state.rows == (("a", "b", "c"),)
    assert state.view is View.TODO


def test_table_refresh_failure_keeps_view(ctx, sources):
    state = AppState()
    press(state, ctx, Key.SELECT)
    path = sources[View.TODO].path
    path.unlink()
    path.mkdir()
    press(state, ctx, Key.REFRESH)
    assert state.view is View.TODO
    assert state.message.startswith("Refresh failed")


def test_edit_reloads_and_forces_redraw(ctx, sources):
    state = AppState()
    press(state, ctx, Key.SELECT)

    def edit(path):
        path.write_text("| x | y | z |\n", encoding="utf-8")

    ctx.edit = edit
    press(state, ctx, Key.EDIT)
    assert state.rows == (("x", "y", "z"),)
    assert state.force_redraw is True
    assert state.view is View.TODO


def test_edit_failure_returns_to_menu(ctx):
    state = AppState()
    press(state, ctx, Key.SELECT)

    def edit(path):
        raise EditorError("nvim exited with status 1")

    ctx.edit = edit
    press(state, ctx, Key.EDIT)
    assert state.view is View.MAIN_MENU
    assert state.force_redraw is True
    assert "nvim exited" in state.message


def test_reload_after_edit_failure_returns_to_menu(ctx, sources):
    state = AppState()
    press(state, ctx, Key.SELECT)

    def edit(path):
        path.unlink()
        path.mkdir()

    ctx.edit = edit
    press(state, ctx, Key.EDIT)
    assert state.view is View.MAIN_MENU
    assert state.message.startswith("Edit failed")


def write_tasks(path, count):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "\n".join(f"| task {i} | open | low |" for i in range(count)), encoding="utf-8"
    )


def test_refresh_of_shrunk_table_pulls_offset_back(ctx, sources):
    path = sources[View.TODO].path
    write_tasks(path, 40)
    state = AppState()
    press(state, ctx, Key.SELECT)
    press(state, ctx, *[Key.DOWN] * 30)
    assert state.scroll.offset == 30

    write_tasks(path, 2)
    press(state, ctx, Key.REFRESH)
    assert len(state.rows) == 2
    assert state.scroll.offset == 0


def test_refresh_keeps_offset_that_still_fits(ctx, sources):
    path = sources[View.TODO].path
    write_tasks(path, 40)
    state = AppState()
    press(state, ctx, Key.SELECT)
    press(state, ctx, *[Key.DOWN] * 30)

    write_tasks(path, 25)
    press(state, ctx, Key.REFRESH)
    assert state.scroll.offset == 15


def test_edit_that_shrinks_table_pulls_offset_back(ctx, sources):
    write_tasks(sources[View.TODO].path, 40)
    state = AppState()
    press(state, ctx, Key.SELECT)
    press(state, ctx, *[Key.DOWN] * 20)

    ctx.edit = lambda path: write_tasks(path, 12)
    press(state, ctx, Key.EDIT)
    assert state.scroll.offset == 2


def open_bill(state, ctx):
    state.selected = app.MENU_ITEMS.index(app.MenuItem.BILL)
    press(state, ctx, Key.SELECT)


def test_bill_refresh_after_files_removed_pulls_offset_back(ctx, bill_dir):
    for i in range(15):
        write_bank_csv(bill_dir / f"{i:02d}.csv", [])
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, *[Key.DOWN] * 5)
    assert state.scroll.offset == 5

    for i in range(10):
        (bill_dir / f"{i:02d}.csv").unlink()
    press(state, ctx, Key.REFRESH)
    assert len(ctx.catalog) == 5
    assert state.scroll.offset == 0


def test_bill_analyze_and_export(ctx, bill_dir):
    write_bank_csv(
        bill_dir / "a.csv",
        [bank_record("Boss", "Salary", "收入", "50.00"), bank_record("Shop", "Lunch", "支出", "20.00")],
    )
    state = AppState()
    open_bill(state, ctx)
    assert state.view is View.BILL
    assert len(ctx.catalog) == 1

    press(state, ctx, Key.ANALYZE)
    assert state.message == "Analyzed 1 file(s); net income: 30.00"

    press(state, ctx, Key.ANALYZE)
    assert state.message == "No new bill files to analyze"

    press(state, ctx, Key.EXPORT)
    assert ctx.calls["ask"] == [ctx.catalog.directory]
    assert state.force_redraw is True
    reports = list((bill_dir / "reports").glob("bill_report_*.md"))
    assert len(reports) == 1
    assert state.message.startswith("Wrote 1 report(s)")


def test_bill_analyze_error_is_reported(ctx, bill_dir):
    write_bank_csv(bill_dir / "a.csv", [bank_record("A", "B", "支出", "1")], header=None)
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, Key.ANALYZE)
    assert state.view is View.BILL
    assert state.message.startswith("Analyze failed: a.csv")


def test_bill_export_empty_does_not_prompt(ctx):
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, Key.EXPORT)
    assert ctx.calls["ask"] == []
    assert state.message.startswith("Nothing to export")


def test_bill_export_cancelled(ctx, bill_dir):
    write_bank_csv(bill_dir / "a.csv", [bank_record("A", "B", "支出", "1")])
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, Key.ANALYZE)
    ctx.ask_directory = lambda default: None
    press(state, ctx, Key.EXPORT)
    assert state.message == "Export cancelled"
    assert state.view is View.BILL


def test_bill_export_failure_keeps_view(ctx, bill_dir, monkeypatch):
    write_bank_csv(bill_dir / "a.csv", [bank_record("A", "B", "支出", "1")])
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, Key.ANALYZE)

    def boom(aggregate, directory):
        raise ExportError("disk full")

    monkeypatch.setattr(app.report, "export", boom)
    press(state, ctx, Key.EXPORT)
    assert state.message == "Export failed: disk full"
    assert state.view is View.BILL


def test_bill_refresh_picks_up_new_files(ctx, bill_dir):
    state = AppState()
    open_bill(state, ctx)
    assert len(ctx.catalog) == 0
    write_bank_csv(bill_dir / "a.csv", [])
    press(state, ctx, Key.REFRESH)
    assert state.message == "1 file(s), 1 pending"


def test_bill_scroll_and_back(ctx, bill_dir):
    for i in range(12):
        write_bank_csv(bill_dir / f"{i:02}.csv", [])
    state = AppState()
    open_bill(state, ctx)
    press(state, ctx, *[Key.DOWN] * 5)
    assert state.scroll.offset == 2
    press(state, ctx, Key.QUIT)
    assert state.view is View.MAIN_MENU
    assert state.scroll.offset == 0


def test_bill_directory_error_stays_on_menu(ctx, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    ctx.aggregator.catalog.directory = Path(blocker) / "bill"
    state = AppState()
    open_bill(state, ctx)
    assert state.view is View.MAIN_MENU
    assert state.message.startswith("Error reading bill directory")
