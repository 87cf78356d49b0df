import json
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.sarisuki.middleware.observability import build_request_log_payload
from tests.store_helpers import auth_headers, create_store_with_staff


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/staff/record-sale/submit",
        "headers": [],
        "route": SimpleNamespace(path="/staff/record-sale/submit"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.user_id = "staff-1"
    request.state.store_id = "store001"
    request.state.role = "staff"
    request.state.error_code = "CART_EMPTY"
    response = Response(status_code=400)

    payload = build_request_log_payload(request=request, response=response, latency_ms=12.3456)

    assert payload["event"] == "http_request"
    assert payload["trace_id"] == "trace-1"
    assert payload["user_id"] == "staff-1"
    assert payload["store_id"] == "store001"
    assert payload["route"] == "/staff/record-sale/submit"
    assert payload["status_code"] == 400
    assert payload["latency_ms"] == 12.35
    assert payload["error_code"] == "CART_EMPTY"


def test_request_log_carries_session_scope(client, caplog):
    store = create_store_with_staff(client)
    caplog.clear()

    with caplog.at_level("INFO", logger="sarisuki.request"):
        client.get("/staff/record-sale", headers=auth_headers(store["staff_token"]))

    records = [json.loads(record.getMessage()) for record in caplog.records if record.name == "sarisuki.request"]
    assert records[-1]["store_id"] == store["store_id"]
    assert records[-1]["role"] == "staff"
    assert records[-1]["status_code"] == 200
