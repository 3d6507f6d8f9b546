from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping

from models.queued_action import ActionType, QueuedAction
from services.backend import BackendClient


logger = logging.getLogger("rentdesk.sync.processor")

Handler = Callable[[BackendClient, Mapping[str, Any]], Awaitable[None]]

PAYMENT_FIELDS = ("paid_amount", "recorded_by", "recorded_at", "payment_mode", "service_center")


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


async def _record_payment(backend: BackendClient, data: Mapping[str, Any]) -> None:
    values = {"paid": True}
    values.update({name: data.get(name) for name in PAYMENT_FIELDS})
    await backend.update("daily_payments", {"id": data["payment_id"]}, values)


async def _update_payment(backend: BackendClient, data: Mapping[str, Any]) -> None:
    values = {key: value for key, value in data.items() if key != "payment_id"}
    if not values:
        raise ValueError("payment update without fields")
    await backend.update("daily_payments", {"id": data["payment_id"]}, values)


async def _add_tenant(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.insert("tenants", data["tenant"])


async def _update_tenant(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.update("tenants", {"id": data["tenant_id"]}, data["updates"])


async def _delete_tenant(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.delete("tenants", {"id": data["tenant_id"]})


async def _add_comment(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.insert(
        "tenant_comments",
        {
            "tenant_id": data["tenant_id"],
            "comment_text": data["comment_text"],
            "commenter_name": data["commenter_name"],
        },
    )


async def _delete_comment(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.delete("tenant_comments", {"id": data["comment_id"]})


async def _transfer_tenant(backend: BackendClient, data: Mapping[str, Any]) -> None:
    await backend.update(
        "tenants",
        {"id": data["tenant_id"]},
        {"service_center": data["to_service_center"]},
    )
    await backend.insert(
        "tenant_service_center_transfers",
        {
            "tenant_id": data["tenant_id"],
            "from_service_center": data["from_service_center"],
            "to_service_center": data["to_service_center"],
            "transferred_by": data["transferred_by"],
            "reason": data.get("reason") or None,
            "notes": data.get("notes") or None,
        },
    )


HANDLERS: Dict[ActionType, Handler] = {
    ActionType.RECORD_PAYMENT: _record_payment,
    ActionType.UPDATE_PAYMENT: _update_payment,
    ActionType.ADD_TENANT: _add_tenant,
    ActionType.UPDATE_TENANT: _update_tenant,
    ActionType.DELETE_TENANT: _delete_tenant,
    ActionType.ADD_COMMENT: _add_comment,
    ActionType.DELETE_COMMENT: _delete_comment,
    ActionType.TRANSFER_TENANT: _transfer_tenant,
}

_missing = set(ActionType) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"no queue handler for: {sorted(kind.value for kind in _missing)}")


class ActionProcessor:
    """Applies one queued action to the backend.

    ``process`` never raises: handler errors become ``Outcome.FAILED`` and an
    unknown tag becomes ``Outcome.UNSUPPORTED``.
    """

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def process(self, action: QueuedAction) -> Outcome:
        kind = action.kind
        if kind is None:
            logger.error("Unknown action type %r (%s)", action.type, action.id)
            return Outcome.UNSUPPORTED
        try:
            await HANDLERS[kind](self.backend, action.payload)
        except KeyError as exc:
            logger.warning("Action %s %s is missing field %s", kind.value, action.id, exc)
            return Outcome.FAILED
        except Exception as exc:
            logger.warning("Action %s %s failed: %s", kind.value, action.id, exc)
            return Outcome.FAILED
        logger.info("Applied %s %s", kind.value, action.id)
        return Outcome.SUCCESS


__all__ = ["ActionProcessor", "HANDLERS", "Outcome"]
