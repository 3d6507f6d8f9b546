"""Persistence of the offline action queue.

The whole queue is stored as one JSON document under a single key. Storage
is best effort: read failures look like an empty queue and write failures are
only logged, the in-memory queue stays authoritative for the session.
"""
from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from core.settings import OFFLINE_QUEUE
from models.queued_action import QueuedAction
from storage.kv_store import KeyValueStore


logger = logging.getLogger("rentdesk.sync.store")

STORAGE_ERRORS = (SQLAlchemyError, OSError)


class QueueStore:
    def __init__(self, kv: KeyValueStore, key: Optional[str] = None) -> None:
        self.kv = kv
        self.key = key or OFFLINE_QUEUE.storage_key

    def load(self) -> List[QueuedAction]:
        try:
            raw = self.kv.get(self.key)
        except STORAGE_ERRORS as exc:
            logger.warning("Could not read offline queue: %s", exc)
            return []
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, list):
            logger.warning("Discarding corrupt offline queue under %r", self.key)
            self._discard()
            return []

        actions: List[QueuedAction] = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed queued action: %r", item)
                continue
            try:
                actions.append(QueuedAction.from_dict(item))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed queued action: %s", exc)
        return actions

    def save(self, queue: Sequence[QueuedAction]) -> bool:
        try:
            if not queue:
                self.kv.remove(self.key)
            else:
                payload = json.dumps([action.to_dict() for action in queue], ensure_ascii=False)
                self.kv.set(self.key, payload)
        except STORAGE_ERRORS as exc:
            logger.warning("Offline queue not persisted (%d actions): %s", len(queue), exc)
            return False
        return True

    def _discard(self) -> None:
        try:
            self.kv.remove(self.key)
        except STORAGE_ERRORS as exc:
            logger.warning("Could not clear corrupt offline queue: %s", exc)


__all__ = ["QueueStore"]
