"""
Key/value persistence for local collections

Each collection lives in one slot and is replaced whole on every write.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import Database, KeyValueSlot

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The underlying storage could not be read or written"""


class KeyValueStore:
    """Persistence collaborator used by the record stores"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_many(self, keys: Iterable[str]) -> None:
        raise NotImplementedError

    def set_many(self, items: Dict[str, str]) -> None:
        """
        Write several slots.

        The base implementation writes them one by one in the given order;
        backends with transactions override it to write all or nothing.
        """
        for key, value in items.items():
            self.set(key, value)


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store, used by tests and throwaway sessions"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def set_many(self, items: Dict[str, str]) -> None:
        self.data.update(items)

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


class SQLiteKeyValueStore(KeyValueStore):
    """Slots stored as rows of the local SQLite database"""

    def __init__(self, database: Database):
        self.database = database

    def get(self, key: str) -> Optional[str]:
        try:
            with self.database.get_session() as session:
                slot = session.get(KeyValueSlot, key)
                return slot.value if slot else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Dict[str, str]) -> None:
        now = datetime.now(timezone.utc)
        try:
            with self.database.get_session() as session:
                for key, value in items.items():
                    slot = session.get(KeyValueSlot, key)
                    if slot:
                        slot.value = value
                        slot.updated_at = now
                    else:
                        slot = KeyValueSlot(key=key, value=value, updated_at=now)
                    session.add(slot)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {', '.join(items)}: {e}") from e
        logger.debug("Wrote slots %s", list(items))

    def remove_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        try:
            with self.database.get_session() as session:
                for key in keys:
                    slot = session.get(KeyValueSlot, key)
                    if slot:
                        session.delete(slot)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove {', '.join(keys)}: {e}") from e
