# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Relay envelope codec.

The relay always answers HTTP 200 with a JSON object describing what it saw
when it probed the target::

    {success, status, statusText, responseTime, timestamp, serverUrl,
     contentLength, headers, error, responseSnippet?, errorKind?}

``status``/``statusText`` are null when the relay never got a response.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .classifier import classify, detect_error_page
from .errors import ErrorKind, RelayError
from .http.headers import normalize_headers
from .models.probe import Failed, ProbeOutcome, Responded

_TIMEOUT_HINTS = ("timeout", "timed out", "aborted")


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_envelope(
    outcome: ProbeOutcome,
    *,
    server_url: str,
    snippet_bytes: int = 0,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Wrap a probe outcome the way the relay reports it."""
    verdict = classify(outcome)
    envelope: dict[str, Any] = {
        "success": verdict.is_online,
        "responseTime": outcome.elapsed_ms if outcome.elapsed_ms is not None else 0,
        "timestamp": iso_timestamp(now),
        "serverUrl": server_url,
    }

    if isinstance(outcome, Failed):
        envelope.update(
            status=None,
            statusText=None,
            contentLength=0,
            headers={},
            error=outcome.message or outcome.error_kind.value,
            errorKind=outcome.error_kind.value,
        )
        return envelope

    envelope.update(
        status=outcome.status_code,
        statusText=outcome.status_text,
        contentLength=len(outcome.body_text),
        headers=dict(outcome.headers),
        error=None if verdict.is_online else verdict.reason,
    )
    if snippet_bytes > 0:
        envelope["responseSnippet"] = outcome.body_text[:snippet_bytes]
    return envelope


def _int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _failure_kind(data: Mapping[str, Any], message: str) -> ErrorKind:
    raw_kind = data.get("errorKind")
    if isinstance(raw_kind, str):
        try:
            return ErrorKind(raw_kind.upper())
        except ValueError:
            pass
    lowered = message.lower()
    if any(hint in lowered for hint in _TIMEOUT_HINTS):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNKNOWN


def outcome_from_envelope(data: Any) -> ProbeOutcome:
    """
    Adapt a relay envelope back into a ProbeOutcome.

    Raises RelayError when ``data`` is not an envelope at all.
    """
    if not isinstance(data, Mapping) or "success" not in data:
        raise RelayError("Relay answer is not a status envelope")

    elapsed_ms = _int_or_none(data.get("responseTime"))
    message = str(data.get("error") or "")
    status = _int_or_none(data.get("status"))

    if status is None:
        return Failed(_failure_kind(data, message), message or "relay reported no response", elapsed_ms)

    snippet = data.get("responseSnippet")
    body_text = snippet if isinstance(snippet, str) else ""
    # The relay saw the whole body; trust its verdict when the snippet is too short to repeat it.
    if data.get("success") is False and 200 <= status < 400 and detect_error_page(body_text) is None:
        return Failed(ErrorKind.PROTOCOL_ERROR, message or "relay reported failure", elapsed_ms)

    return Responded(
        status_code=status,
        status_text=str(data.get("statusText") or ""),
        headers=normalize_headers(data.get("headers")),
        body_text=body_text,
        elapsed_ms=elapsed_ms,
    )


__all__ = ["build_envelope", "iso_timestamp", "outcome_from_envelope"]
