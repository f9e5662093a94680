# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from datetime import datetime, timezone

import pytest

from pulsewatch.envelope import build_envelope, iso_timestamp, outcome_from_envelope
from pulsewatch.errors import ErrorKind, RelayError
from pulsewatch.models import Failed, Responded

NOW = datetime(2025, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc)
URL = "https://target.example/"


def test_iso_timestamp_matches_javascript_format():
    assert iso_timestamp(NOW) == "2025-03-04T05:06:07.890Z"


def test_envelope_for_healthy_response():
    outcome = Responded(200, "OK", {"Content-Type": "text/html"}, "Welcome home", 88)
    envelope = build_envelope(outcome, server_url=URL, snippet_bytes=7, now=NOW)
    assert envelope == {
        "success": True,
        "status": 200,
        "statusText": "OK",
        "responseTime": 88,
        "timestamp": "2025-03-04T05:06:07.890Z",
        "serverUrl": URL,
        "contentLength": 12,
        "headers": {"content-type": "text/html"},
        "error": None,
        "responseSnippet": "Welcome",
    }


def test_envelope_for_error_status_carries_label():
    envelope = build_envelope(Responded(503, "Service Unavailable", {}, "", 5), server_url=URL, now=NOW)
    assert envelope["success"] is False
    assert envelope["error"] == "Service Unavailable"
    assert "responseSnippet" not in envelope


def test_envelope_for_transport_failure():
    envelope = build_envelope(Failed(ErrorKind.TIMEOUT, "aborted", 10000), server_url=URL, now=NOW)
    assert envelope["success"] is False
    assert envelope["status"] is None
    assert envelope["statusText"] is None
    assert envelope["error"] == "aborted"
    assert envelope["errorKind"] == "TIMEOUT"
    assert envelope["responseTime"] == 10000
    assert envelope["headers"] == {}


def test_failed_envelope_round_trips_kind():
    envelope = build_envelope(Failed(ErrorKind.NETWORK_UNREACHABLE, "refused", 4), server_url=URL, now=NOW)
    assert outcome_from_envelope(envelope) == Failed(ErrorKind.NETWORK_UNREACHABLE, "refused", 4)


def test_legacy_envelope_without_kind_sniffs_timeouts():
    outcome = outcome_from_envelope({"success": False, "status": None, "error": "The operation was aborted", "responseTime": 10})
    assert outcome.error_kind == ErrorKind.TIMEOUT
    outcome = outcome_from_envelope({"success": False, "status": None, "error": "fetch failed"})
    assert outcome == Failed(ErrorKind.UNKNOWN, "fetch failed", None)


def test_disguised_page_beyond_snippet_trusts_relay_verdict():
    body = "x" * 50 + " cloudflare bad gateway"
    envelope = build_envelope(Responded(200, "OK", {}, body, 9), server_url=URL, snippet_bytes=10, now=NOW)
    assert envelope["success"] is False
    outcome = outcome_from_envelope(envelope)
    assert outcome == Failed(ErrorKind.PROTOCOL_ERROR, "Bad Gateway (detected from Cloudflare error page)", 9)


def test_disguised_page_inside_snippet_stays_a_response():
    envelope = build_envelope(Responded(200, "OK", {}, "cloudflare bad gateway", 9), server_url=URL, snippet_bytes=100)
    outcome = outcome_from_envelope(envelope)
    assert isinstance(outcome, Responded)
    assert outcome.body_text == "cloudflare bad gateway"


@pytest.mark.parametrize("data", [None, [], {"status": 200}, "ok"])
def test_non_envelopes_are_rejected(data):
    with pytest.raises(RelayError):
        outcome_from_envelope(data)
