import asyncio
import json

import httpx
import pytest

from core.settings import BackendSettings
from models.queued_action import ActionType, QueuedAction
from services.backend import BackendClient, BackendError
from services.queue_processor import HANDLERS, ActionProcessor, Outcome


SETTINGS = BackendSettings(base_url="https://db.example.com", api_key="anon-key", timeout_sec=1.0)


def _processor(handler):
    return ActionProcessor(BackendClient(SETTINGS, transport=httpx.MockTransport(handler)))


def _recorder(status=204):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, dict(request.url.params), body, request.headers))
        return httpx.Response(status)

    return calls, handler


def _run(processor, action_type, payload):
    return asyncio.run(processor.process(QueuedAction(type=action_type.value, payload=payload)))


def test_every_action_type_has_a_handler():
    assert set(HANDLERS) == set(ActionType)


def test_record_payment_marks_row_paid():
    calls, handler = _recorder()
    outcome = _run(
        _processor(handler),
        ActionType.RECORD_PAYMENT,
        {
            "payment_id": "p1",
            "paid_amount": 15000,
            "recorded_by": "agent-7",
            "recorded_at": "2024-05-01T08:00:00Z",
            "payment_mode": "mobile_money",
            "service_center": "Kawempe",
        },
    )

    assert outcome is Outcome.SUCCESS
    ((method, path, params, body, headers),) = calls
    assert method == "PATCH"
    assert path == "/rest/v1/daily_payments"
    assert params == {"id": "eq.p1"}
    assert body == {
        "paid": True,
        "paid_amount": 15000,
        "recorded_by": "agent-7",
        "recorded_at": "2024-05-01T08:00:00Z",
        "payment_mode": "mobile_money",
        "service_center": "Kawempe",
    }
    assert headers["apikey"] == "anon-key"
    assert headers["Authorization"] == "Bearer anon-key"
    assert headers["Prefer"] == "return=minimal"


def test_update_payment_sends_remaining_fields():
    calls, handler = _recorder()
    outcome = _run(_processor(handler), ActionType.UPDATE_PAYMENT, {"payment_id": "p1", "paid": True})

    assert outcome is Outcome.SUCCESS
    assert calls[0][:4] == ("PATCH", "/rest/v1/daily_payments", {"id": "eq.p1"}, {"paid": True})


def test_tenant_crud_requests():
    calls, handler = _recorder()
    processor = _processor(handler)

    assert _run(processor, ActionType.ADD_TENANT, {"tenant": {"tenant_name": "Nakato", "rent_amount": 300000}}) is Outcome.SUCCESS
    assert _run(processor, ActionType.UPDATE_TENANT, {"tenant_id": "t1", "updates": {"status": "active"}}) is Outcome.SUCCESS
    assert _run(processor, ActionType.DELETE_TENANT, {"tenant_id": "t1"}) is Outcome.SUCCESS

    assert [call[:4] for call in calls] == [
        ("POST", "/rest/v1/tenants", {}, {"tenant_name": "Nakato", "rent_amount": 300000}),
        ("PATCH", "/rest/v1/tenants", {"id": "eq.t1"}, {"status": "active"}),
        ("DELETE", "/rest/v1/tenants", {"id": "eq.t1"}, None),
    ]


def test_comment_requests():
    calls, handler = _recorder()
    processor = _processor(handler)

    _run(processor, ActionType.ADD_COMMENT, {"tenant_id": "t1", "comment_text": "Promised Friday", "commenter_name": "Okello", "extra": 1})
    _run(processor, ActionType.DELETE_COMMENT, {"comment_id": "c3"})

    assert calls[0][:4] == (
        "POST",
        "/rest/v1/tenant_comments",
        {},
        {"tenant_id": "t1", "comment_text": "Promised Friday", "commenter_name": "Okello"},
    )
    assert calls[1][:3] == ("DELETE", "/rest/v1/tenant_comments", {"id": "eq.c3"})


def test_transfer_updates_tenant_then_records_transfer():
    calls, handler = _recorder()
    outcome = _run(
        _processor(handler),
        ActionType.TRANSFER_TENANT,
        {
            "tenant_id": "t1",
            "from_service_center": "Kawempe",
            "to_service_center": "Nansana",
            "transferred_by": "admin",
            "reason": "",
        },
    )

    assert outcome is Outcome.SUCCESS
    assert calls[0][:4] == ("PATCH", "/rest/v1/tenants", {"id": "eq.t1"}, {"service_center": "Nansana"})
    assert calls[1][:4] == (
        "POST",
        "/rest/v1/tenant_service_center_transfers",
        {},
        {
            "tenant_id": "t1",
            "from_service_center": "Kawempe",
            "to_service_center": "Nansana",
            "transferred_by": "admin",
            "reason": None,
            "notes": None,
        },
    )


def test_server_error_is_a_failure_not_an_exception():
    _, handler = _recorder(status=503)
    assert _run(_processor(handler), ActionType.DELETE_TENANT, {"tenant_id": "t1"}) is Outcome.FAILED


def test_network_error_is_a_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _run(_processor(handler), ActionType.DELETE_TENANT, {"tenant_id": "t1"}) is Outcome.FAILED


def test_missing_payload_field_is_a_failure():
    calls, handler = _recorder()
    assert _run(_processor(handler), ActionType.UPDATE_TENANT, {"tenant_id": "t1"}) is Outcome.FAILED
    assert calls == []


def test_unknown_type_is_unsupported():
    calls, handler = _recorder()
    outcome = asyncio.run(_processor(handler).process(QueuedAction(type="ARCHIVE_TENANT", payload={})))
    assert outcome is Outcome.UNSUPPORTED
    assert calls == []


def test_backend_error_carries_status():
    _, handler = _recorder(status=409)
    backend = BackendClient(SETTINGS, transport=httpx.MockTransport(handler))

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(backend.insert("tenants", {"tenant_name": "Dup"}))
    assert excinfo.value.status == 409


def test_update_without_filter_is_refused():
    _, handler = _recorder()
    backend = BackendClient(SETTINGS, transport=httpx.MockTransport(handler))

    with pytest.raises(ValueError):
        asyncio.run(backend.update("tenants", {}, {"status": "gone"}))


def test_backend_requires_url():
    with pytest.raises(ValueError):
        BackendClient(BackendSettings(base_url=""))
