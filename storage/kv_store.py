"""Durable string key-value store on top of the local SQLite database."""
from __future__ import annotations

from typing import Callable, Optional, Protocol

from sqlmodel import Session

from datetime_utils import utc_now
from models.kv_entry import KeyValueEntry
from storage.db import get_session


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    """``KeyValueStore`` persisted in the ``kventry`` table.

    Database errors propagate; callers decide whether they are fatal.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or get_session

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            record = session.get(KeyValueEntry, key)
            return record.value if record else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            record = session.get(KeyValueEntry, key)
            if record is None:
                record = KeyValueEntry(key=key, value=value)
            else:
                record.value = value
                record.updated_at = utc_now()
            session.add(record)
            session.commit()

    def remove(self, key: str) -> None:
        with self._session_factory() as session:
            record = session.get(KeyValueEntry, key)
            if record:
                session.delete(record)
                session.commit()

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


__all__ = ["KeyValueStore", "SqlKeyValueStore"]
