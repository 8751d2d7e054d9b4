import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from config import get_settings
from models import StorageEntry


logger = logging.getLogger(__name__)


class StorageKeys:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.transactions = f"{prefix}_data"
        self.categories = f"{prefix}_cats"
        self.account = f"{prefix}_acc"
        self.savings = f"{prefix}_savings"
        self.wishlist = f"{prefix}_wishlist"


class LocalStore:
    """Key/value JSON blobs persisted in the local database file."""

    def __init__(self, session: Session, prefix: str | None = None) -> None:
        self.session = session
        self.keys = StorageKeys(prefix or get_settings().storage_prefix)

    def load(self, key: str, default: Any) -> Any:
        entry = self.session.get(StorageEntry, key)
        if entry is None:
            return default
        try:
            return json.loads(entry.value)
        except json.JSONDecodeError as exc:
            logger.warning(f"store_load_failed: key={key} error={exc}")
            return default

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        entry = self.session.get(StorageEntry, key)
        if entry is None:
            self.session.add(StorageEntry(key=key, value=payload))
        else:
            entry.value = payload
            entry.updated_at = datetime.utcnow()
        self.session.commit()

    def clear(self) -> int:
        prefix = self.keys.prefix
        keys = self.session.scalars(
            select(StorageEntry.key).where(
                StorageEntry.key.startswith(f"{prefix}_", autoescape=True)
            )
        ).all()
        self.session.execute(delete(StorageEntry).where(StorageEntry.key.in_(keys)))
        self.session.commit()
        logger.info(f"store_cleared: prefix={prefix} keys={len(keys)}")
        return len(keys)
