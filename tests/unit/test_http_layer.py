# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import httpx

from pulsewatch.config import MonitorSettings
from pulsewatch.http import HttpRequest, HttpResponse, HttpxClient, StubHttpClient, normalize_headers


def _client(handler, **settings_kwargs) -> HttpxClient:
    settings = MonitorSettings(**settings_kwargs)
    return HttpxClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_httpx_client_success_sets_default_user_agent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get("user-agent")
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, headers={"X-Test": "1"}, text="Welcome")

    async def run():
        client = _client(handler, user_agent="UA/1.0")
        try:
            return await client.request(HttpRequest(url="http://example/", headers={"Accept": "text/html"}))
        finally:
            await client.aclose()

    resp = asyncio.run(run())
    assert resp.ok is True
    assert resp.status_code == 200
    assert resp.reason_phrase == "OK"
    assert resp.text == "Welcome"
    assert resp.headers["x-test"] == "1"
    assert resp.meta["body_truncated"] is False
    assert seen == {"ua": "UA/1.0", "accept": "text/html"}


def test_httpx_client_keeps_error_status_as_response():
    async def run():
        client = _client(lambda request: httpx.Response(503, text="down"))
        return await client.request(HttpRequest(url="http://example/"))

    resp = asyncio.run(run())
    assert resp.ok is True
    assert resp.status_code == 503
    assert resp.reason_phrase == "Service Unavailable"


def test_httpx_client_truncates_large_bodies():
    async def run():
        client = _client(lambda request: httpx.Response(200, content=b"a" * 100), max_body_bytes=10)
        return await client.request(HttpRequest(url="http://example/"))

    resp = asyncio.run(run())
    assert resp.text == "a" * 10
    assert resp.meta["body_truncated"] is True


def test_httpx_client_converts_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        return await _client(handler).request(HttpRequest(url="http://example/"))

    resp = asyncio.run(run())
    assert resp.ok is False
    assert resp.status_code is None
    assert isinstance(resp.error, httpx.ConnectError)
    assert resp.error_message == "connection refused"


def test_stub_client_serves_sequences_and_records_requests():
    first = HttpResponse(ok=True, status_code=503)
    second = HttpResponse(ok=True, status_code=200)
    stub = StubHttpClient({"http://a/": [first, second]})

    async def run():
        results = [await stub.request(HttpRequest(url="http://a/")) for _ in range(3)]
        missing = await stub.request(HttpRequest(url="http://b/"))
        await stub.aclose()
        return results, missing

    results, missing = asyncio.run(run())
    assert [r.status_code for r in results] == [503, 200, 200]
    assert missing.ok is False
    assert isinstance(missing.error, ConnectionError)
    assert len(stub.requests) == 4
    assert stub.closed is True


def test_header_helpers_are_case_insensitive():
    headers = httpx.Headers({"Content-Type": "text/html", "CF-Ray": " abc "})
    assert normalize_headers(headers) == {"content-type": "text/html", "cf-ray": " abc "}
    assert normalize_headers([("Server", "nginx")]) == {"server": "nginx"}
    assert normalize_headers(None) == {}
    assert normalize_headers({None: "x", " ": "y", "A": None}) == {"a": ""}


def test_response_error_message():
    assert HttpResponse(ok=True, status_code=200).error_message is None
    assert HttpResponse(ok=False, error=TimeoutError()).error_message == "TimeoutError"
