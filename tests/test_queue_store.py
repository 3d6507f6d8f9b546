import json
from datetime import datetime, timezone

from sqlalchemy.exc import OperationalError

from models.queued_action import ActionType, QueuedAction
from storage.kv_store import SqlKeyValueStore
from storage.queue_store import QueueStore


class BrokenKeyValueStore:
    """Store whose every call fails like a locked or missing database."""

    def get(self, key):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def set(self, key, value):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    def remove(self, key):
        raise OperationalError("DELETE", {}, Exception("database is locked"))


def _actions():
    return [
        QueuedAction(type=ActionType.RECORD_PAYMENT.value, payload={"payment_id": "p1", "paid_amount": 5000}),
        QueuedAction(type=ActionType.ADD_COMMENT.value, payload={"tenant_id": "t1", "comment_text": "Paid late"}, retry_count=2),
    ]


def test_save_then_load_round_trip(session_factory):
    kv = SqlKeyValueStore(session_factory)
    queue = _actions()

    assert QueueStore(kv).save(queue) is True

    reloaded = QueueStore(SqlKeyValueStore(session_factory)).load()
    assert reloaded == queue


def test_empty_queue_clears_key(session_factory):
    kv = SqlKeyValueStore(session_factory)
    store = QueueStore(kv, key="pending")
    store.save(_actions())
    assert kv.contains("pending")

    store.save([])

    assert kv.get("pending") is None
    assert store.load() == []


def test_missing_key_loads_empty(session_factory):
    assert QueueStore(SqlKeyValueStore(session_factory)).load() == []


def test_corrupt_value_is_discarded(session_factory):
    kv = SqlKeyValueStore(session_factory)
    kv.set("offline_sync_queue", "{not json")

    assert QueueStore(kv).load() == []
    assert kv.get("offline_sync_queue") is None


def test_non_list_value_is_discarded(session_factory):
    kv = SqlKeyValueStore(session_factory)
    kv.set("offline_sync_queue", json.dumps({"id": "a"}))

    assert QueueStore(kv).load() == []
    assert kv.get("offline_sync_queue") is None


def test_malformed_entries_are_skipped(session_factory):
    kv = SqlKeyValueStore(session_factory)
    good = _actions()[0]
    kv.set(
        "offline_sync_queue",
        json.dumps([good.to_dict(), {"type": "ADD_TENANT"}, "junk", {"id": "x", "type": "ADD_TENANT", "payload": []}]),
    )

    assert QueueStore(kv).load() == [good]


def test_unknown_type_still_loads(session_factory):
    kv = SqlKeyValueStore(session_factory)
    kv.set("offline_sync_queue", json.dumps([{"id": "a1", "type": "ARCHIVE_TENANT", "payload": {}}]))

    loaded = QueueStore(kv).load()
    assert len(loaded) == 1
    assert loaded[0].type == "ARCHIVE_TENANT"
    assert loaded[0].kind is None


def test_browser_queue_layout_is_accepted(session_factory):
    kv = SqlKeyValueStore(session_factory)
    kv.set(
        "offline_sync_queue",
        json.dumps([
            {
                "id": "1700000000000-0.42",
                "type": "DELETE_COMMENT",
                "data": {"comment_id": "c9"},
                "timestamp": 1_700_000_000_000,
                "retries": 1,
            }
        ]),
    )

    (action,) = QueueStore(kv).load()
    assert action.payload == {"comment_id": "c9"}
    assert action.retry_count == 1
    assert action.enqueued_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_storage_failures_are_not_raised():
    store = QueueStore(BrokenKeyValueStore())

    assert store.load() == []
    assert store.save(_actions()) is False
    assert store.save([]) is False
