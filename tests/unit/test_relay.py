# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import logging
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pulsewatch.config import MonitorSettings
from pulsewatch.http import HttpResponse, StubHttpClient
from pulsewatch.relay import RELAY_PATH, Relay, create_app, serve_relay

TARGET = "http://target.local/"


def _relay(response: HttpResponse, **settings_kwargs) -> Relay:
    settings = MonitorSettings(target_url=TARGET, **settings_kwargs)
    return Relay(settings, client_factory=lambda _settings: StubHttpClient({TARGET: response}))


def test_relay_envelope_for_healthy_target():
    relay = _relay(HttpResponse(ok=True, status_code=200, reason_phrase="OK", text="Welcome"))
    envelope = asyncio.run(relay.envelope())
    assert envelope["success"] is True
    assert envelope["status"] == 200
    assert envelope["serverUrl"] == TARGET
    assert envelope["contentLength"] == 7
    assert envelope["responseSnippet"] == "Welcome"
    assert envelope["timestamp"].endswith("Z")


def test_relay_envelope_for_unreachable_target(caplog):
    relay = _relay(HttpResponse(ok=False, error=ConnectionRefusedError("refused")))
    with caplog.at_level(logging.WARNING, logger="pulsewatch.relay"):
        envelope = asyncio.run(relay.envelope())
    assert envelope["success"] is False
    assert envelope["status"] is None
    assert envelope["error"] == "refused"
    assert envelope["errorKind"] == "NETWORK_UNREACHABLE"
    assert "Network connectivity issue" in caplog.text


def test_relay_envelope_respects_snippet_setting():
    relay = _relay(HttpResponse(ok=True, status_code=200, text="Welcome"), snippet_bytes=0)
    assert "responseSnippet" not in asyncio.run(relay.envelope())


def test_serve_relay_hands_app_to_uvicorn(monkeypatch):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    serve_relay(MonitorSettings(target_url=TARGET, relay_host="0.0.0.0", relay_port=9090))
    (app, kwargs), = calls
    assert isinstance(app, FastAPI)
    assert app.state.relay.settings.target_url == TARGET
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9090
    assert kwargs["log_level"] in {"debug", "info", "warning", "error", "critical"}


class TestRelayApp(unittest.TestCase):
    def setUp(self):
        relay = _relay(HttpResponse(ok=True, status_code=502, reason_phrase="Bad Gateway", text="oops"))
        self.client = TestClient(create_app(relay))

    def test_get_always_answers_200_with_envelope(self):
        resp = self.client.get(RELAY_PATH, headers={"Origin": "https://monitor.example"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")
        self.assertEqual(resp.headers["cache-control"], "no-store")
        data = resp.json()
        self.assertFalse(data["success"])
        self.assertEqual(data["status"], 502)
        self.assertEqual(data["error"], "Bad Gateway")

    def test_cors_preflight_is_answered_by_middleware(self):
        resp = self.client.options(
            RELAY_PATH,
            headers={"Origin": "https://monitor.example", "Access-Control-Request-Method": "GET"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("GET", resp.headers["access-control-allow-methods"])
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")

    def test_bare_options_is_accepted(self):
        resp = self.client.options(RELAY_PATH)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, b"")

    def test_other_paths_are_not_found(self):
        resp = self.client.get("/elsewhere")
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
