"""Data models used by the offline sync layer."""
from .kv_entry import KeyValueEntry
from .queued_action import ActionType, QueuedAction

__all__ = ["ActionType", "KeyValueEntry", "QueuedAction"]
