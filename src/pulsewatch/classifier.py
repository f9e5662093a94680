# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Probe classification.

Turns a single ProbeOutcome into a Verdict. Pure: no I/O, no clock, no state.

Disguised error pages are found by substring sniffing. Some reverse proxies
answer 200 while serving an HTML error page, so a healthy status code alone is
not trusted. The signature list is a heuristic: unrelated pages that quote the
same phrases are misclassified as offline.
"""

from __future__ import annotations

from .errors import ErrorKind
from .models.probe import Failed, ProbeOutcome, Responded
from .models.verdict import HealthState, Verdict

REASON_ONLINE = "Server active"
REASON_TIMEOUT = "Timeout - server not responding"
REASON_NETWORK = "Server inactive (network error)"
REASON_NO_CONNECTIVITY = "no internet connection"
REASON_CHECKING = "Checking..."

STATUS_LABELS: dict[int, str] = {
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    500: "Internal Server Error",
    404: "Not Found",
    403: "Forbidden",
    401: "Unauthorized",
}

GATEWAY_PROVIDER_MARKER = "cloudflare"

# (phrase, status) pairs that only count next to the provider marker.
PROVIDER_PHRASES: tuple[tuple[str, int], ...] = (
    ("bad gateway", 502),
    ("service unavailable", 503),
    ("gateway timeout", 504),
)

# Literal error-code substrings, in priority order.
ERROR_CODE_SIGNATURES: tuple[tuple[str, int], ...] = tuple(
    (f"{prefix} {code}", code)
    for code in (502, 503, 504, 500)
    for prefix in ("error", "error code")
)


def status_label(status_code: int, status_text: str = "") -> str:
    """Human label for an unhealthy status code."""
    label = STATUS_LABELS.get(status_code)
    if label:
        return label
    return f"HTTP {status_code} {status_text or ''}".strip()


def detect_error_page(body_text: str) -> str | None:
    """
    Return the reason for a disguised error page, or None.

    Provider-marker pairings win over bare error-code substrings.
    """
    if not body_text:
        return None
    lowered = body_text.lower()

    if GATEWAY_PROVIDER_MARKER in lowered:
        for phrase, code in PROVIDER_PHRASES:
            if phrase in lowered:
                return f"{STATUS_LABELS[code]} (detected from Cloudflare error page)"

    for needle, code in ERROR_CODE_SIGNATURES:
        if needle in lowered:
            return f"{STATUS_LABELS[code]} (detected from error page)"
    return None


def _classify_failure(outcome: Failed) -> Verdict:
    if outcome.error_kind == ErrorKind.TIMEOUT:
        reason = REASON_TIMEOUT
    elif outcome.error_kind == ErrorKind.NETWORK_UNREACHABLE:
        reason = REASON_NETWORK
    else:
        reason = f"Server inactive: {outcome.message}"
    return Verdict(HealthState.OFFLINE, reason, outcome.elapsed_ms)


def classify(outcome: ProbeOutcome) -> Verdict:
    """Classify a probe outcome. The first matching rule wins."""
    if isinstance(outcome, Failed):
        return _classify_failure(outcome)

    if not isinstance(outcome, Responded):
        raise TypeError(f"Unsupported probe outcome: {type(outcome).__name__}")

    if outcome.healthy_status:
        disguised = detect_error_page(outcome.body_text)
        if disguised:
            return Verdict(HealthState.OFFLINE, disguised, outcome.elapsed_ms)
        return Verdict(HealthState.ONLINE, REASON_ONLINE, outcome.elapsed_ms)

    return Verdict(
        HealthState.OFFLINE,
        status_label(outcome.status_code, outcome.status_text),
        outcome.elapsed_ms,
    )


def checking_verdict() -> Verdict:
    return Verdict(HealthState.CHECKING, REASON_CHECKING, None)


def no_connectivity_verdict() -> Verdict:
    return Verdict(HealthState.OFFLINE, REASON_NO_CONNECTIVITY, None)


__all__ = [
    "ERROR_CODE_SIGNATURES",
    "STATUS_LABELS",
    "checking_verdict",
    "classify",
    "detect_error_page",
    "no_connectivity_verdict",
    "status_label",
]
