from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from sqlalchemy import select

from .database import new_session_factory
from .errors import DashboardError, NothingPending, SourceUnreadable
from .logging_setup import get_logger
from .models import Direction, EntryRecord, LedgerAggregate, ProcessedFile
from .parsers import ParserKind

logger = get_logger("termdash.services")


class FileCatalog:
    """Bill exports found in one directory, sorted by path."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.paths: list[Path] = []

    def refresh(self) -> list[Path]:
        """Rescan the directory, creating it when it does not exist yet."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            found = [
                p.resolve()
                for p in self.directory.iterdir()
                if p.is_file()
                and not p.name.startswith((".", "~$"))
                and ParserKind.for_path(p) is not None
            ]
        except OSError as exc:
            raise SourceUnreadable(self.directory, str(exc)) from exc
        self.paths = sorted(found, key=str)
        logger.debug("Catalog %s: %d files", self.directory, len(self.paths))
        return self.paths

    def __iter__(self):
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


class Aggregator:
    """Running ledger for one dashboard session.

    Each catalog path is ingested at most once. A file's entries and its
    processed marker are committed together, so a file is either fully in
    the ledger or not at all.
    """

    def __init__(self, catalog: FileCatalog, session_factory=None):
        self.catalog = catalog
        self.SessionLocal = session_factory or new_session_factory()

    def processed_paths(self) -> set[Path]:
        with self.SessionLocal() as session:
            return {Path(p) for p in session.scalars(select(ProcessedFile.path))}

    def is_processed(self, path: str | Path) -> bool:
        return Path(path).resolve() in self.processed_paths()

    def pending(self) -> list[Path]:
        done = self.processed_paths()
        return [p for p in self.catalog if p not in done]

    def pending_count(self) -> int:
        return len(self.pending())

    def ingest(self) -> int:
        """Fold every pending catalog file into the ledger, in catalog order.

        Returns the number of files ingested. Raises :class:`NothingPending`
        when there is nothing new, and re-raises the first parse error;
        files ingested before the failing one stay ingested.
        """

        pending = self.pending()
        if not pending:
            raise NothingPending()

        added = 0
        for path in pending:
            kind = ParserKind.for_path(path)
            try:
                parsed = kind.parse(path)
            except DashboardError:
                logger.warning("Ingest stopped at %s after %d file(s)", path, added)
                raise
            self._store(path, kind, parsed)
            added += 1
            logger.info(
                "Ingested %s: %d incomes, %d expenses",
                path.name,
                len(parsed.incomes),
                len(parsed.expenses),
            )
        return added

    def _store(self, path: Path, kind: ParserKind, parsed: LedgerAggregate) -> None:
        with self.SessionLocal() as session:
            source = ProcessedFile(path=str(path), kind=kind.name.lower())
            for entry in parsed.expenses:
                source.entries.append(EntryRecord.from_entry(Direction.EXPENSE, entry))
            for entry in parsed.incomes:
                source.entries.append(EntryRecord.from_entry(Direction.INCOME, entry))
            session.add(source)
            session.commit()

    def aggregate(self) -> LedgerAggregate:
        """Snapshot of every entry ingested so far, in ingestion order."""
        agg = LedgerAggregate()
        with self.SessionLocal() as session:
            for rec in session.scalars(select(EntryRecord).order_by(EntryRecord.id)):
                agg.add(Direction(rec.direction), rec.to_entry())
        return agg

    def total_income(self) -> Decimal:
        return self.aggregate().total_income

    def total_expense(self) -> Decimal:
        return self.aggregate().total_expense

    def net(self) -> Decimal:
        return self.aggregate().net

    def is_empty(self) -> bool:
        with self.SessionLocal() as session:
            return session.scalars(select(EntryRecord.id).limit(1)).first() is None
