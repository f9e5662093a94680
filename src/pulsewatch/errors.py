# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import asyncio
import socket
from enum import Enum

import httpx


class ErrorKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    RELAY_ERROR = "RELAY_ERROR"
    UNKNOWN = "UNKNOWN"


class PulsewatchError(Exception):
    """Base exception for pulsewatch errors."""


class ConfigError(PulsewatchError):
    """Raised when settings are unusable."""


class RelayError(PulsewatchError):
    """Raised when a relay answer cannot be turned into a probe outcome."""


def categorize_exception(exc: BaseException) -> ErrorKind:
    """
    Map Python/httpx exceptions to ErrorKind.
    """
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError, asyncio.CancelledError)):
        return ErrorKind.TIMEOUT

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorKind.NETWORK_UNREACHABLE

    if isinstance(exc, (socket.gaierror, socket.herror, ConnectionError)):
        return ErrorKind.NETWORK_UNREACHABLE

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.DecodingError, httpx.TooManyRedirects)):
        return ErrorKind.PROTOCOL_ERROR

    if isinstance(exc, RelayError):
        return ErrorKind.RELAY_ERROR

    return ErrorKind.UNKNOWN


def error_kind_to_reason(kind: ErrorKind | None) -> str:
    """Short label for log lines."""
    mapping = {
        ErrorKind.TIMEOUT: "Probe exceeded its deadline",
        ErrorKind.NETWORK_UNREACHABLE: "Network connectivity issue",
        ErrorKind.PROTOCOL_ERROR: "Unhealthy or malformed response",
        ErrorKind.RELAY_ERROR: "Relay failure",
        ErrorKind.UNKNOWN: "Probe failed",
        None: "",
    }
    return mapping.get(kind, "Probe failed")
