"""Exceptions raised by the dashboard and its ledger engine."""
from __future__ import annotations

from pathlib import Path


class DashboardError(Exception):
    """Base class for errors that are shown to the user as a status line."""


class SourceError(DashboardError):
    """A file or directory could not be read or written."""


class SourceUnreadable(SourceError):
    def __init__(self, path: Path | str, reason: str = "cannot be read") -> None:
        self.path = Path(path)
        super().__init__(f"{self.path.name}: {reason}")


class ExportError(SourceError):
    """The bill report could not be written."""


class LedgerFormatError(DashboardError):
    """A ledger export file is structurally broken and was not ingested."""

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"{self.path.name}: {detail}")


class MissingWorksheet(LedgerFormatError):
    pass


class MissingHeader(LedgerFormatError):
    pass


class MalformedCsv(LedgerFormatError):
    pass


class EditorError(DashboardError):
    """The external editor could not be started or exited with an error."""


class NothingPending(Exception):
    """Every file in the catalog has already been ingested."""

    def __init__(self) -> None:
        super().__init__("No new bill files to analyze")
