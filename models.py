from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


FIXED_COST_CATEGORY = "Fixed Cost"
DEFAULT_CATEGORIES = ("Food", "Transport", "Leisure")


class Direction(str, Enum):
    credit = "credit"
    debit = "debit"


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"
    prospect_income = "prospect_income"
    prospect_expense = "prospect_expense"

    @property
    def direction(self) -> Direction:
        return _DIRECTIONS[self]

    @property
    def is_prospective(self) -> bool:
        return self in _PROSPECTIVE

    @property
    def sign(self) -> int:
        return 1 if _DIRECTIONS[self] == Direction.credit else -1


_DIRECTIONS = {
    TransactionType.income: Direction.credit,
    TransactionType.prospect_income: Direction.credit,
    TransactionType.expense: Direction.debit,
    TransactionType.prospect_expense: Direction.debit,
}
_PROSPECTIVE = frozenset(
    {TransactionType.prospect_income, TransactionType.prospect_expense}
)


class StorageEntry(Base):
    """One JSON blob of local device storage, addressed by a versioned key."""

    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
