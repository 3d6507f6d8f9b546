from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from core.settings import OFFLINE_QUEUE, SYNC_LOG_PATH
from datetime_utils import to_rfc3339_utc, utc_now
from models.queued_action import ActionType, QueuedAction
from services.connectivity import ConnectivityMonitor
from services.notifications import Notifier, plural
from services.queue_processor import ActionProcessor, Outcome
from storage.queue_store import QueueStore


def _ensure_logger() -> logging.Logger:
    logger = logging.getLogger("rentdesk.sync")
    if not logger.handlers:
        SYNC_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(SYNC_LOG_PATH, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger


@dataclass(frozen=True)
class SyncSummary:
    succeeded: int = 0
    retrying: int = 0
    abandoned: int = 0


class OfflineQueue:
    """Captures mutations while offline and replays them once back online.

    The instance owns the queue: every change goes through it and is mirrored
    to the ``QueueStore`` right away. Drain cycles are single-flight and walk
    a snapshot of the queue strictly in order.
    """

    def __init__(
        self,
        store: QueueStore,
        processor: ActionProcessor,
        monitor: ConnectivityMonitor,
        *,
        notifier: Optional[Notifier] = None,
        max_retries: int = OFFLINE_QUEUE.max_retries,
        stabilization_delay_sec: float = OFFLINE_QUEUE.stabilization_delay_sec,
    ) -> None:
        self.store = store
        self.processor = processor
        self.monitor = monitor
        self.notifier = notifier or Notifier()
        self.max_retries = max_retries
        self.stabilization_delay_sec = stabilization_delay_sec
        self.logger = _ensure_logger()

        self._queue: List[QueuedAction] = store.load()
        self._syncing = False
        self._direct_inflight = 0
        self._listeners: List[Callable[[], None]] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._scheduled: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self.last_summary: Optional[SyncSummary] = None
        self.last_sync_at: Optional[datetime] = None

        if self._queue:
            self.logger.info("Restored %s from storage", plural(len(self._queue), "queued action"))
        monitor.subscribe(self._on_connectivity)

    # ------------------------------------------------------------------
    # Status API
    @property
    def queue(self) -> Tuple[QueuedAction, ...]:
        return tuple(self._queue)

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    def status(self) -> dict:
        return {
            "queueLength": self.queue_length,
            "isSyncing": self.is_syncing,
            "isOnline": self.is_online,
            "lastSyncAt": to_rfc3339_utc(self.last_sync_at),
            "lastSummary": asdict(self.last_summary) if self.last_summary else None,
        }

    def subscribe(self, listener: Callable[[], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Enqueue API
    def add_to_queue(self, action_type: ActionType | str, payload: Optional[Mapping[str, Any]] = None) -> QueuedAction:
        kind, data = _validate(action_type, payload)
        action = QueuedAction(type=kind.value, payload=data)
        self._queue.append(action)
        self._persist()
        self.logger.info("Queued %s %s (%d pending)", kind.value, action.id, len(self._queue))

        if self.is_online:
            self._schedule_sync()
        else:
            self.notifier.info(
                "Saved offline. Will sync when online.",
                duration_ms=OFFLINE_QUEUE.offline_notice_ms,
            )
        self._emit()
        return action

    async def submit(
        self,
        action_type: ActionType | str,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        defer: bool = False,
    ) -> bool:
        """Apply a mutation now when possible, otherwise queue it.

        Returns ``True`` when the backend accepted the change right away.
        """
        kind, data = _validate(action_type, payload)
        # Older queued or in-flight mutations must reach the backend first.
        if defer or not self.is_online or self._queue or self._syncing or self._direct_inflight:
            self.add_to_queue(kind, data)
            return False

        self._direct_inflight += 1
        try:
            outcome = await self.processor.process(QueuedAction(type=kind.value, payload=data))
        finally:
            self._direct_inflight -= 1
        if outcome is Outcome.SUCCESS:
            return True
        self.logger.warning("Direct %s failed, queueing for retry", kind.value)
        self.add_to_queue(kind, data)
        return False

    # ------------------------------------------------------------------
    # Drain cycle
    async def sync_queue(self) -> Optional[SyncSummary]:
        if not self.is_online or not self._queue or self._syncing:
            return None

        self._syncing = True
        self._emit()
        snapshot = list(self._queue)
        self.logger.info("Sync started: %s", plural(len(snapshot), "action"))
        succeeded = retrying = abandoned = 0
        try:
            for action in snapshot:
                outcome = await self.processor.process(action)
                if outcome is Outcome.SUCCESS:
                    succeeded += 1
                    self._remove(action.id)
                elif outcome is Outcome.UNSUPPORTED:
                    abandoned += 1
                    self._remove(action.id)
                    self.notifier.error("Dropped an action this app cannot sync", description=f"Action type: {action.type}")
                else:
                    updated = action.with_retry()
                    if updated.retry_count >= self.max_retries:
                        abandoned += 1
                        self._remove(action.id)
                        self.logger.error("Giving up on %s %s after %d attempts", action.type, action.id, updated.retry_count)
                        self.notifier.error(
                            f"Failed to sync action after {self.max_retries} attempts",
                            description=f"Action type: {action.type}",
                        )
                    else:
                        retrying += 1
                        self._replace(updated)
        finally:
            self._syncing = False
            self.last_sync_at = utc_now()

        summary = SyncSummary(succeeded=succeeded, retrying=retrying, abandoned=abandoned)
        self.last_summary = summary
        self.logger.info(
            "Sync finished: %d synced, %d to retry, %d abandoned", succeeded, retrying, abandoned
        )
        if succeeded:
            self.notifier.success(f"Successfully synced {plural(succeeded, 'action')}!")
        if retrying:
            self.notifier.warning(f"{plural(retrying, 'action')} will be retried")

        seen = {action.id for action in snapshot}
        if self.is_online and any(action.id not in seen for action in self._queue):
            self._schedule_sync()
        self._emit()
        return summary

    # ------------------------------------------------------------------
    # Lifecycle
    async def start(self) -> None:
        """Bind to the running loop and drain anything restored from storage."""
        self._loop = asyncio.get_running_loop()
        if self.is_online and self._queue:
            self._schedule_sync()

    async def wait_until_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self.monitor.unsubscribe(self._on_connectivity)
        self._cancel_scheduled()
        await self.wait_until_idle()

    # ------------------------------------------------------------------
    # Internals
    def _on_connectivity(self, online: bool) -> None:
        if online:
            if self._queue:
                self.notifier.success("Back online! Syncing your changes...")
                self._schedule_sync()
        else:
            self._cancel_scheduled()
        self._emit()

    def _schedule_sync(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._loop is not None and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._schedule_sync)
            else:
                self.logger.debug("No event loop bound, sync waits for the next trigger")
            return
        if self._scheduled is not None and not self._scheduled.done():
            return
        task = loop.create_task(self._delayed_sync())
        self._scheduled = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _delayed_sync(self) -> None:
        await asyncio.sleep(self.stabilization_delay_sec)
        if self._scheduled is asyncio.current_task():
            self._scheduled = None
        await self.sync_queue()

    def _cancel_scheduled(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if self._loop is not None and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._cancel_scheduled)
            return
        if self._scheduled is not None and not self._scheduled.done():
            self._scheduled.cancel()
        self._scheduled = None

    def _remove(self, action_id: str) -> None:
        self._queue = [action for action in self._queue if action.id != action_id]
        self._persist()

    def _replace(self, updated: QueuedAction) -> None:
        self._queue = [updated if action.id == updated.id else action for action in self._queue]
        self._persist()

    def _persist(self) -> None:
        self.store.save(self._queue)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as exc:
                self.logger.error("Queue listener failed: %s", exc)


def _validate(action_type: ActionType | str, payload: Optional[Mapping[str, Any]]) -> Tuple[ActionType, Dict[str, Any]]:
    kind = ActionType.parse(action_type)
    if kind is None:
        raise ValueError(f"Unsupported action type: {action_type}")
    data = dict(payload or {})
    try:
        json.dumps(data)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Payload for {kind.value} is not JSON serializable: {exc}") from exc
    return kind, data


__all__ = ["OfflineQueue", "SyncSummary"]
