"""Readers for wallet spreadsheet and bank CSV bill exports.

Both readers return a :class:`~termdash.models.LedgerAggregate` for one file.
A structurally broken file raises a :class:`~termdash.errors.DashboardError`
and yields nothing; a single bad row is skipped.
"""
from __future__ import annotations

import csv
import enum
import io
import re
import zipfile
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Sequence

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .errors import MalformedCsv, MissingHeader, MissingWorksheet, SourceUnreadable
from .logging_setup import get_logger
from .models import Direction, LedgerAggregate, LedgerEntry

logger = get_logger("termdash.parsers")

EXPENSE_MARK = "支"
INCOME_MARK = "收"

# wallet spreadsheet: header row starts with this label, fixed column layout
SHEET_HEADER_LABEL = "交易时间"
SHEET_COLUMNS = {"counterparty": 2, "description": 3, "direction": 4, "amount": 5}

# bank CSV: the transaction table starts at this text
CSV_HEADER_PREFIX = "交易时间,"
CSV_COLUMNS = {"counterparty": 2, "description": 4, "direction": 5, "amount": 6}
CSV_MIN_FIELDS = 7

_AMOUNT_SCRUB_RE = re.compile(r"[^0-9.\-]")


class ParserKind(enum.Enum):
    SPREADSHEET = ".xlsx"
    CSV = ".csv"

    @classmethod
    def for_path(cls, path: str | Path) -> "ParserKind | None":
        suffix = Path(path).suffix.lower()
        for kind in cls:
            if kind.value == suffix:
                return kind
        return None

    def parse(self, path: str | Path) -> LedgerAggregate:
        if self is ParserKind.SPREADSHEET:
            return parse_spreadsheet(path)
        return parse_bank_csv(path)


def parse_ledger(path: str | Path) -> LedgerAggregate:
    """Parse ``path`` with the reader picked by its extension."""
    kind = ParserKind.for_path(path)
    if kind is None:
        raise SourceUnreadable(path, "unsupported file type")
    return kind.parse(path)


def classify(marker: str) -> Direction | None:
    if EXPENSE_MARK in marker:
        return Direction.EXPENSE
    if INCOME_MARK in marker:
        return Direction.INCOME
    return None


def parse_amount(text: str) -> Decimal | None:
    """Parse ``"¥1,234.56"`` style text; ``None`` when nothing numeric is left."""

    cleaned = _AMOUNT_SCRUB_RE.sub("", text)
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return abs(value)


def _field(row: Sequence[str], idx: int) -> str:
    return row[idx].strip() if idx < len(row) else ""


def _fold_row(
    aggregate: LedgerAggregate,
    row: Sequence[str],
    columns: dict[str, int],
    where: str,
) -> None:
    marker = _field(row, columns["direction"])
    amount_text = _field(row, columns["amount"])
    if not marker or not amount_text:
        logger.debug("%s: skipped, empty direction or amount", where)
        return
    amount = parse_amount(amount_text)
    if amount is None:
        logger.debug("%s: skipped, bad amount %r", where, amount_text)
        return
    direction = classify(marker)
    if direction is None:
        logger.debug("%s: skipped, unknown direction %r", where, marker)
        return
    aggregate.add(
        direction,
        LedgerEntry(
            counterparty=_field(row, columns["counterparty"]),
            description=_field(row, columns["description"]),
            amount=amount,
        ),
    )


def _cell_text(value) -> str:
    return "" if value is None else str(value)


def parse_spreadsheet(path: str | Path) -> LedgerAggregate:
    """Read the first worksheet of a wallet ``.xlsx`` export."""

    path = Path(path)
    try:
        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except OSError as exc:
        raise SourceUnreadable(path, str(exc)) from exc
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise SourceUnreadable(path, "not a readable workbook") from exc

    try:
        if not wb.worksheets:
            raise MissingWorksheet(path, "workbook has no worksheet")
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)

        header_at = None
        for lineno, values in enumerate(rows, start=1):
            if values and _cell_text(values[0]).strip() == SHEET_HEADER_LABEL:
                header_at = lineno
                break
        if header_at is None:
            raise MissingHeader(path, f"no '{SHEET_HEADER_LABEL}' header row")

        aggregate = LedgerAggregate()
        for lineno, values in enumerate(rows, start=header_at + 1):
            cells = [_cell_text(v) for v in values]
            if all(not c.strip() for c in cells):
                continue
            _fold_row(aggregate, cells, SHEET_COLUMNS, f"{path.name}:{lineno}")
    finally:
        wb.close()

    logger.debug(
        "%s: %d incomes, %d expenses", path.name, len(aggregate.incomes), len(aggregate.expenses)
    )
    return aggregate


def parse_bank_csv(path: str | Path) -> LedgerAggregate:
    """Read a UTF-8 bank ``.csv`` export with a free-form preamble."""

    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SourceUnreadable(path, str(exc)) from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedCsv(path, "not UTF-8 text") from exc
    if text.startswith("\ufeff"):
        text = text[1:]

    start = text.find(CSV_HEADER_PREFIX)
    if start < 0:
        raise MissingHeader(path, f"no '{CSV_HEADER_PREFIX}' header line")

    aggregate = LedgerAggregate()
    reader = csv.reader(io.StringIO(text[start:]), strict=True)
    try:
        next(reader)
        for record in reader:
            where = f"{path.name}:{reader.line_num}"
            if len(record) < CSV_MIN_FIELDS:
                logger.debug("%s: skipped, %d fields", where, len(record))
                continue
            _fold_row(aggregate, record, CSV_COLUMNS, where)
    except csv.Error as exc:
        raise MalformedCsv(path, f"line {reader.line_num}: {exc}") from exc

    logger.debug(
        "%s: %d incomes, %d expenses", path.name, len(aggregate.incomes), len(aggregate.expenses)
    )
    return aggregate
