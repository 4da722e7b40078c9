"""Markdown bill report."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .errors import ExportError
from .logging_setup import get_logger
from .models import LedgerAggregate, LedgerEntry

logger = get_logger("termdash.report")

TABLE_HEADER = "| Counterparty | Description | Amount |\n|---|---|---|"


def fmt_amount(value: Decimal) -> str:
    return f"{value:.2f}"


def net_line(aggregate: LedgerAggregate) -> str:
    """``net income: X`` or ``net expense: X`` with the absolute value."""
    net = aggregate.net
    label = "net income" if net >= 0 else "net expense"
    return f"{label}: {fmt_amount(abs(net))}"


def _cell(text: str) -> str:
    return text.replace("|", "\\|")


def _section(title: str, entries: list[LedgerEntry], total_label: str, total: Decimal) -> list[str]:
    lines = [f"## {title}", ""]
    if not entries:
        lines += ["No records.", ""]
        return lines
    lines.append(TABLE_HEADER)
    for e in entries:
        lines.append(f"| {_cell(e.counterparty)} | {_cell(e.description)} | {fmt_amount(e.amount)} |")
    lines += ["", f"{total_label}: {fmt_amount(total)}", ""]
    return lines


def render_report(aggregate: LedgerAggregate, generated: datetime | None = None) -> str:
    generated = generated or datetime.now()
    lines = ["# Bill Report", "", f"Generated: {generated:%Y-%m-%d %H:%M:%S}", ""]
    lines += _section("Expenses", aggregate.expenses, "Total expense", aggregate.total_expense)
    lines += _section("Incomes", aggregate.incomes, "Total income", aggregate.total_income)
    lines.append(net_line(aggregate))
    return "\n".join(lines) + "\n"


def _write_new(directory: Path, stem: str, text: str) -> Path:
    """Write ``text`` to ``stem.md``, or ``stem_N.md`` if that name is taken."""
    suffix = 0
    while True:
        name = f"{stem}.md" if suffix == 0 else f"{stem}_{suffix}.md"
        target = directory / name
        try:
            with target.open("x", encoding="utf-8") as fh:
                fh.write(text)
        except FileExistsError:
            suffix += 1
            continue
        return target


def export(aggregate: LedgerAggregate, directory: str | Path, now: datetime | None = None) -> int:
    """Write one report into ``directory`` and return the number of files written.

    Nothing is written for an empty aggregate.
    """

    if aggregate.is_empty:
        return 0
    now = now or datetime.now()
    directory = Path(directory).expanduser()
    stem = f"bill_report_{now:%Y%m%d_%H%M%S}"
    text = render_report(aggregate, now)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target = _write_new(directory, stem, text)
    except OSError as exc:
        raise ExportError(f"Cannot write report to {directory}: {exc}") from exc
    logger.info("Exported %d entries to %s", len(aggregate), target)
    return 1
