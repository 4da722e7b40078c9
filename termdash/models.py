from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship

from .database import Base

ZERO = Decimal("0")


class Direction(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class LedgerEntry:
    """One classified transaction taken from a bill export."""

    counterparty: str
    description: str
    amount: Decimal


@dataclass
class LedgerAggregate:
    """Incomes and expenses in the order they were read.

    Totals are computed on demand from the entries.
    """

    incomes: list[LedgerEntry] = field(default_factory=list)
    expenses: list[LedgerEntry] = field(default_factory=list)

    def add(self, direction: Direction, entry: LedgerEntry) -> None:
        if direction is Direction.INCOME:
            self.incomes.append(entry)
        else:
            self.expenses.append(entry)

    @property
    def total_income(self) -> Decimal:
        return sum((e.amount for e in self.incomes), ZERO)

    @property
    def total_expense(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def is_empty(self) -> bool:
        return not self.incomes and not self.expenses

    def __len__(self) -> int:
        return len(self.incomes) + len(self.expenses)


class ProcessedFile(Base):
    """A bill export that has been folded into the session ledger."""

    __tablename__ = "processed_files"

    id = Column(Integer, primary_key=True)
    path = Column(String, nullable=False, unique=True)
    kind = Column(String(16), nullable=False)
    processed_at = Column(DateTime, default=datetime.now)

    entries = relationship("EntryRecord", back_populates="source")


class EntryRecord(Base):
    """Stored form of a :class:`LedgerEntry`."""

    __tablename__ = "entries"

    id = Column(Integer, primary_key=True)
    source_id = Column(
        Integer,
        ForeignKey("processed_files.id"),
        index=True,
        nullable=False,
    )
    direction = Column(String(8), nullable=False)
    counterparty = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    # exact decimal text; SQLite has no decimal type
    amount = Column(String, nullable=False)

    source = relationship("ProcessedFile", back_populates="entries")

    __table_args__ = (
        Index("ix_entries_direction_id", "direction", "id"),
    )

    @classmethod
    def from_entry(cls, direction: Direction, entry: LedgerEntry) -> "EntryRecord":
        return cls(
            direction=direction.value,
            counterparty=entry.counterparty,
            description=entry.description,
            amount=str(entry.amount),
        )

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(self.counterparty, self.description, Decimal(self.amount))
