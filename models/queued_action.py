"""Queued offline actions and the closed set of action kinds."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from datetime_utils import from_epoch_ms, parse_rfc3339, to_rfc3339_utc, utc_now


class ActionType(str, Enum):
    RECORD_PAYMENT = "RECORD_PAYMENT"
    UPDATE_PAYMENT = "UPDATE_PAYMENT"
    ADD_TENANT = "ADD_TENANT"
    UPDATE_TENANT = "UPDATE_TENANT"
    DELETE_TENANT = "DELETE_TENANT"
    ADD_COMMENT = "ADD_COMMENT"
    DELETE_COMMENT = "DELETE_COMMENT"
    TRANSFER_TENANT = "TRANSFER_TENANT"

    @classmethod
    def parse(cls, value: "ActionType | str") -> Optional["ActionType"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


@dataclass(frozen=True)
class QueuedAction:
    """A captured mutation waiting to be applied to the backend.

    ``type`` stays a plain string so queues persisted by another build,
    possibly holding tags this build does not know, still load.
    """

    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex)
    enqueued_at: datetime = field(default_factory=utc_now)
    retry_count: int = 0

    @property
    def kind(self) -> Optional[ActionType]:
        return ActionType.parse(self.type)

    def with_retry(self) -> "QueuedAction":
        return replace(self, retry_count=self.retry_count + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "payload": self.payload,
            "enqueued_at": to_rfc3339_utc(self.enqueued_at),
            "retry_count": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueuedAction":
        """Build an action from a stored record.

        Also accepts the browser client's layout (``data``, ``timestamp`` in
        milliseconds, ``retries``) so queues exported from it can be replayed.
        """

        action_id = data.get("id")
        action_type = data.get("type")
        if not action_id or not action_type:
            raise ValueError("queued action requires 'id' and 'type'")

        payload = data["payload"] if "payload" in data else data.get("data")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValueError(f"payload of {action_id} is not an object")

        enqueued_at = None
        if "enqueued_at" in data:
            enqueued_at = parse_rfc3339(data.get("enqueued_at"))
        elif isinstance(data.get("timestamp"), (int, float)):
            enqueued_at = from_epoch_ms(data["timestamp"])

        retry_count = int(data.get("retry_count", data.get("retries", 0)) or 0)
        if retry_count < 0:
            raise ValueError(f"negative retry count for {action_id}")

        return cls(
            type=str(action_type),
            payload=dict(payload),
            id=str(action_id),
            enqueued_at=enqueued_at or utc_now(),
            retry_count=retry_count,
        )


__all__ = ["ActionType", "QueuedAction"]
