"""
tests/unit/test_cloudflare_client.py

Unit tests for provider/cloudflare_client.py.
All Cloudflare API calls are intercepted by respx; no real network traffic.
"""

from __future__ import annotations

import json

import httpx
import pytest

from exceptions import DnsProviderError, HttpStatusError, NetworkError, ResponseParseError
from provider.cloudflare_client import CloudflareClient, build_update_payload
from provider.dns_provider import DnsRecord
from services.error_classifier import is_transient

_ZONE = "zone123"
_TOKEN = "test-token"
_BASE = "https://api.cloudflare.com/client/v4"


def _cf_response(result, success=True, errors=None):
    """Helper: build a Cloudflare-shaped JSON response dict."""
    return {"success": success, "result": result, "errors": errors or [], "messages": []}


def _record_dict(**kwargs):
    return {
        "id": kwargs.get("id", "rec1"),
        "name": kwargs.get("name", "home.example.com"),
        "content": kwargs.get("content", "203.0.113.5"),
        "type": "A",
        "ttl": kwargs.get("ttl", 300),
        "proxied": kwargs.get("proxied", True),
        "zone_id": _ZONE,
    }


# ---------------------------------------------------------------------------
# list_records
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_records_returns_records(mock_http, http_client):
    route = mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([_record_dict()]))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    records = await cf.list_records(_ZONE, "home.example.com")

    assert records == [
        DnsRecord(id="rec1", name="home.example.com", content="203.0.113.5",
                  record_type="A", proxied=True, ttl=300)
    ]
    request = route.calls.last.request
    assert request.url.params["type"] == "A"
    assert request.url.params["name"] == "home.example.com"
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_list_records_empty(mock_http, http_client):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([]))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    assert await cf.list_records(_ZONE, "missing.example.com") == []


@pytest.mark.asyncio
async def test_success_false_raises_provider_error_with_errors(mock_http, http_client):
    errors = [{"code": 9109, "message": "Invalid access token"}]
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([], success=False, errors=errors))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    with pytest.raises(DnsProviderError) as exc_info:
        await cf.list_records(_ZONE, "home.example.com")

    assert exc_info.value.errors == errors
    assert not is_transient(exc_info.value)


@pytest.mark.asyncio
async def test_rate_limited_envelope_is_transient(mock_http, http_client):
    errors = [{"code": 1015, "message": "You are being rate limited"}]
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response(None, success=False, errors=errors))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    with pytest.raises(DnsProviderError) as exc_info:
        await cf.list_records(_ZONE, "home.example.com")

    assert is_transient(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("status,transient", [(429, True), (503, True), (400, False), (404, False)])
async def test_http_status_errors(mock_http, http_client, status, transient):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(status, json={"success": False, "errors": []})
    )
    cf = CloudflareClient(http_client, _TOKEN)

    with pytest.raises(HttpStatusError) as exc_info:
        await cf.list_records(_ZONE, "home.example.com")

    assert exc_info.value.status_code == status
    assert is_transient(exc_info.value) is transient


@pytest.mark.asyncio
async def test_network_error(mock_http, http_client):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        side_effect=httpx.ConnectError("refused")
    )
    cf = CloudflareClient(http_client, _TOKEN)

    with pytest.raises(NetworkError) as exc_info:
        await cf.list_records(_ZONE, "home.example.com")

    assert is_transient(exc_info.value)


@pytest.mark.asyncio
async def test_non_json_body_is_permanent(mock_http, http_client):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, text="<html>maintenance</html>")
    )
    cf = CloudflareClient(http_client, _TOKEN)

    with pytest.raises(ResponseParseError) as exc_info:
        await cf.list_records(_ZONE, "home.example.com")

    assert not is_transient(exc_info.value)


# ---------------------------------------------------------------------------
# update_record
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_record_sends_full_state(mock_http, http_client):
    existing = DnsRecord(id="rec1", name="home.example.com", content="203.0.113.5",
                         proxied=True, ttl=300)
    route = mock_http.put(f"{_BASE}/zones/{_ZONE}/dns_records/rec1").mock(
        return_value=httpx.Response(200, json=_cf_response(_record_dict(content="203.0.113.9")))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    result = await cf.update_record(_ZONE, existing, "203.0.113.9")

    assert result.content == "203.0.113.9"
    sent = json.loads(route.calls.last.request.content)
    assert sent == {
        "type": "A",
        "name": "home.example.com",
        "content": "203.0.113.9",
        "ttl": 300,
        "proxied": True,
    }


@pytest.mark.asyncio
async def test_update_record_with_unreadable_result_returns_submitted_state(mock_http, http_client):
    existing = DnsRecord(id="rec1", name="home.example.com", content="203.0.113.5",
                         proxied=True, ttl=300)
    route = mock_http.put(f"{_BASE}/zones/{_ZONE}/dns_records/rec1").mock(
        return_value=httpx.Response(200, json=_cf_response({"id": "rec1"}))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    result = await cf.update_record(_ZONE, existing, "203.0.113.9")

    assert route.call_count == 1
    assert result == DnsRecord(id="rec1", name="home.example.com", content="203.0.113.9",
                               proxied=True, ttl=300)


def test_update_payload_omits_absent_fields():
    record = DnsRecord(id="rec1", name="home.example.com", content="203.0.113.5")

    assert build_update_payload(record, "203.0.113.9") == {
        "type": "A",
        "name": "home.example.com",
        "content": "203.0.113.9",
    }


def test_update_payload_keeps_falsy_values():
    record = DnsRecord(id="rec1", name="a.example.com", content="1.1.1.1", proxied=False, ttl=1)

    payload = build_update_payload(record, "2.2.2.2")

    assert payload["proxied"] is False
    assert payload["ttl"] == 1
