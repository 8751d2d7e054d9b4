from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from pydantic import TypeAdapter, ValidationError
from rapidfuzz.distance import Levenshtein

from auth import generate_session_token, validate_session_token
from metrics import (
    DayCell,
    MonthlySummary,
    daily_breakdown,
    first_weekday,
    forecast,
    summarize,
)
from models import DEFAULT_CATEGORIES, FIXED_COST_CATEGORY
from recurrence import local_today, months_between
from schemas import (
    PASSCODE_PATTERN,
    AccountIn,
    Backup,
    PasscodeChangeIn,
    Saving,
    SavingIn,
    Transaction,
    TransactionIn,
    UserAccount,
    WishlistItem,
    WishlistItemIn,
)
from storage import LocalStore


logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
BACKUP_VERSION = 1

_TRANSACTIONS = TypeAdapter(list[Transaction])
_SAVINGS = TypeAdapter(list[Saving])
_WISHLIST = TypeAdapter(list[WishlistItem])
_CATEGORIES = TypeAdapter(list[str])


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def _load_list(store: LocalStore, key: str, adapter: TypeAdapter) -> list:
    raw = store.load(key, [])
    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning(f"store_invalid_records: key={key} errors={exc.error_count()}")
        return []


def _save_list(store: LocalStore, key: str, adapter: TypeAdapter, items) -> None:
    store.save(key, adapter.dump_python(list(items), mode="json"))


class TransactionService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.key = store.keys.transactions

    def list_all(self) -> tuple[Transaction, ...]:
        return tuple(_load_list(self.store, self.key, _TRANSACTIONS))

    def _save(self, transactions: Sequence[Transaction]) -> None:
        _save_list(self.store, self.key, _TRANSACTIONS, transactions)

    def get(self, transaction_id: str) -> Transaction:
        for txn in self.list_all():
            if txn.id == transaction_id:
                return txn
        raise ValueError("Transaction not found")

    @staticmethod
    def _build(transaction_id: str, data: TransactionIn) -> Transaction:
        if data.is_fixed:
            return Transaction(
                id=transaction_id,
                description=data.description.strip(),
                amount_cents=data.amount_cents,
                type=data.type,
                date=data.date,
                category=FIXED_COST_CATEGORY,
                is_fixed=True,
                fixed_day=data.date.day,
                recurrence_months=data.recurrence_months,
            )
        return Transaction(
            id=transaction_id,
            description=data.description.strip(),
            amount_cents=data.amount_cents,
            type=data.type,
            date=data.date,
            category=data.category.strip() or UNCATEGORIZED,
        )

    def create(self, data: TransactionIn) -> Transaction:
        txn = self._build(new_id(), data)
        self._save((txn, *self.list_all()))
        logger.info(f"transaction_created: id={txn.id} type={txn.type.value}")
        return txn

    def update(self, transaction_id: str, data: TransactionIn) -> Transaction:
        current = self.list_all()
        if not any(t.id == transaction_id for t in current):
            raise ValueError("Transaction not found")
        updated = self._build(transaction_id, data)
        self._save([updated if t.id == transaction_id else t for t in current])
        return updated

    def delete(self, transaction_id: str) -> None:
        current = self.list_all()
        remaining = [t for t in current if t.id != transaction_id]
        if len(remaining) == len(current):
            raise ValueError("Transaction not found")
        self._save(remaining)
        logger.info(f"transaction_deleted: id={transaction_id}")

    def replace_all(self, transactions: Sequence[Transaction]) -> None:
        self._save(transactions)

    def fixed_costs(self) -> list[Transaction]:
        return [t for t in self.list_all() if t.is_fixed]

    def extract(
        self, filter_date: Optional[date] = None, today: Optional[date] = None
    ) -> list[Transaction]:
        today = today or local_today()
        if filter_date:
            items = [t for t in self.list_all() if t.date == filter_date]
        else:
            items = [
                t
                for t in self.list_all()
                if (t.date.year, t.date.month) == (today.year, today.month)
            ]
        return sorted(items, key=lambda t: t.date, reverse=True)


class CategoryService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.key = store.keys.categories

    def list_all(self) -> list[str]:
        raw = self.store.load(self.key, None)
        if raw is None:
            return list(DEFAULT_CATEGORIES)
        try:
            return _CATEGORIES.validate_python(raw)
        except ValidationError:
            logger.warning(f"store_invalid_records: key={self.key}")
            return list(DEFAULT_CATEGORIES)

    def replace_all(self, names: Sequence[str]) -> None:
        self.store.save(self.key, list(names))

    def add(self, name: str) -> str:
        """Append ``name`` unless it already exists, ignoring case."""
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Category name is required")
        categories = self.list_all()
        input_lower = clean_name.lower()
        for existing in categories:
            if existing.lower() == input_lower:
                return existing

        categories.append(clean_name)
        self.replace_all(categories)
        logger.info(f"category_added: name={clean_name}")
        return clean_name

    def similar(self, name: str, max_distance: int = 1) -> list[str]:
        """Existing categories within ``max_distance`` edits of ``name``."""
        input_lower = name.strip().lower()
        matches = []
        for existing in self.list_all():
            existing_lower = existing.lower()
            if existing_lower == input_lower:
                continue
            if Levenshtein.distance(input_lower, existing_lower) <= max_distance:
                matches.append(existing)
        return sorted(matches)


class SavingsService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.key = store.keys.savings

    def list_all(self) -> list[Saving]:
        return _load_list(self.store, self.key, _SAVINGS)

    def replace_all(self, savings: Sequence[Saving]) -> None:
        _save_list(self.store, self.key, _SAVINGS, savings)

    def create(self, data: SavingIn) -> Saving:
        saving = Saving(id=new_id(), amount_cents=data.amount_cents, date=data.date)
        self.replace_all([saving, *self.list_all()])
        return saving

    def delete(self, saving_id: str) -> None:
        current = self.list_all()
        remaining = [s for s in current if s.id != saving_id]
        if len(remaining) == len(current):
            raise ValueError("Saving not found")
        self.replace_all(remaining)

    def total(self) -> int:
        return sum(s.amount_cents for s in self.list_all())


class WishlistService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.key = store.keys.wishlist

    def list_all(self) -> list[WishlistItem]:
        return _load_list(self.store, self.key, _WISHLIST)

    def replace_all(self, items: Sequence[WishlistItem]) -> None:
        _save_list(self.store, self.key, _WISHLIST, items)

    def create(self, data: WishlistItemIn) -> WishlistItem:
        item = WishlistItem(
            id=new_id(),
            title=data.title.strip(),
            amount_cents=data.amount_cents,
            target_date=data.target_date,
        )
        self.replace_all([*self.list_all(), item])
        return item

    def delete(self, item_id: str) -> None:
        current = self.list_all()
        remaining = [i for i in current if i.id != item_id]
        if len(remaining) == len(current):
            raise ValueError("Wishlist item not found")
        self.replace_all(remaining)

    def progress(self, today: Optional[date] = None) -> list[dict[str, object]]:
        """Goal coverage of each wishlist item by the total saved so far."""
        today = today or local_today()
        saved = SavingsService(self.store).total()
        rows: list[dict[str, object]] = []
        for item in sorted(self.list_all(), key=lambda i: i.target_date):
            percent = (
                min(100.0, saved * 100 / item.amount_cents) if item.amount_cents else 100.0
            )
            months_left = max(
                0, months_between(today, item.target_date.year, item.target_date.month)
            )
            rows.append(
                {
                    "item": item,
                    "saved_cents": saved,
                    "percent": percent,
                    "months_left": months_left,
                }
            )
        return rows


class AccountService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.key = store.keys.account

    def get(self) -> Optional[UserAccount]:
        raw = self.store.load(self.key, None)
        if raw is None:
            return None
        try:
            return UserAccount.model_validate(raw)
        except ValidationError:
            logger.warning(f"store_invalid_records: key={self.key}")
            return None

    def register(self, data: AccountIn) -> str:
        if self.get() is not None:
            raise ValueError("An account already exists on this device")
        account = UserAccount(username=data.username, passcode=data.passcode)
        self.store.save(self.key, account.model_dump())
        logger.info(f"account_registered: username={account.username}")
        return generate_session_token(account.username, account.passcode)

    def login(self, passcode: str) -> str:
        account = self.get()
        if account is None:
            raise ValueError("No account registered on this device")
        if passcode != account.passcode:
            raise ValueError("Incorrect passcode")
        return generate_session_token(account.username, account.passcode)

    def check_session(self, token: Optional[str]) -> bool:
        account = self.get()
        if account is None or not token:
            return False
        return validate_session_token(token, account.username, account.passcode)

    def change_passcode(self, data: PasscodeChangeIn) -> str:
        account = self.get()
        if account is None:
            raise ValueError("No account registered on this device")
        if data.old_passcode != account.passcode:
            raise ValueError("Current passcode is incorrect")
        if not PASSCODE_PATTERN.fullmatch(data.new_passcode):
            raise ValueError("New passcode must be exactly 6 digits")
        updated = UserAccount(username=account.username, passcode=data.new_passcode)
        self.store.save(self.key, updated.model_dump())
        logger.info(f"passcode_changed: username={account.username}")
        return generate_session_token(updated.username, updated.passcode)

    def reset(self) -> None:
        removed = self.store.clear()
        logger.info(f"account_reset: keys_removed={removed}")


class BackupService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def export(self) -> dict[str, object]:
        backup = Backup(
            version=BACKUP_VERSION,
            exported_at=datetime.now(timezone.utc),
            transactions=list(TransactionService(self.store).list_all()),
            categories=CategoryService(self.store).list_all(),
            savings=SavingsService(self.store).list_all(),
            wishlist=WishlistService(self.store).list_all(),
        )
        return backup.model_dump(mode="json")

    def import_json(self, content: str | bytes) -> Backup:
        try:
            backup = Backup.model_validate_json(content)
        except ValidationError as exc:
            raise ValueError("Invalid backup file") from exc
        if backup.version > BACKUP_VERSION:
            raise ValueError(f"Unsupported backup version: {backup.version}")

        TransactionService(self.store).replace_all(backup.transactions)
        CategoryService(self.store).replace_all(
            backup.categories or list(DEFAULT_CATEGORIES)
        )
        SavingsService(self.store).replace_all(backup.savings)
        WishlistService(self.store).replace_all(backup.wishlist)
        logger.info(
            f"backup_imported: transactions={len(backup.transactions)} "
            f"savings={len(backup.savings)} wishlist={len(backup.wishlist)}"
        )
        return backup


class MetricsService:
    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def summary(
        self, year: int, month: int, today: Optional[date] = None
    ) -> tuple[MonthlySummary, tuple[Transaction, ...]]:
        snapshot = TransactionService(self.store).list_all()
        return summarize(snapshot, year, month, today=today), snapshot

    def stats(
        self, year: int, month: int, today: Optional[date] = None
    ) -> dict[str, object]:
        summary, snapshot = self.summary(year, month, today)
        return {
            "year": summary.year,
            "month": summary.month,
            "on_hand": summary.on_hand,
            "projected_total": summary.projected_total,
            "future_expenses": summary.future_expenses,
            "monthly_income": summary.monthly_income,
            "monthly_expenses": summary.monthly_expenses,
            "earned_so_far": summary.earned_so_far,
            "spent_so_far": summary.spent_so_far,
            "forecast_total": forecast(summary, snapshot, year, month),
            "health_score": summary.health_score,
        }

    def category_breakdown(
        self, year: int, month: int, today: Optional[date] = None
    ) -> list[dict[str, object]]:
        summary, _ = self.summary(year, month, today)
        rows = []
        for name, total in sorted(
            summary.category_totals.items(), key=lambda item: item[1], reverse=True
        ):
            percent = (
                total * 100 / summary.monthly_expenses
                if summary.monthly_expenses > 0
                else 0.0
            )
            rows.append({"category": name, "total_cents": total, "percent": percent})
        return rows

    def calendar(self, year: int, month: int) -> tuple[int, list[DayCell]]:
        snapshot = TransactionService(self.store).list_all()
        return first_weekday(year, month), daily_breakdown(snapshot, year, month)
