# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""pulsewatch: single-target HTTP liveness monitor."""

from .classifier import classify, detect_error_page, status_label
from .config import MonitorSettings, load_settings
from .controller import AsyncioScheduler, PollingController, check_once, transition
from .envelope import build_envelope, outcome_from_envelope
from .errors import ConfigError, ErrorKind, PulsewatchError, RelayError, categorize_exception
from .http import HttpClient, HttpRequest, HttpResponse, HttpxClient, StubHttpClient, create_default_http_client
from .log import setup_logging
from .models import Failed, HealthState, ProbeOutcome, Responded, StatusSnapshot, Verdict
from .probe import DirectProber, RelayProber, create_prober
from .relay import Relay, create_app, serve_relay
from .runtime import Pulsewatch
from .version import __version__

__all__ = [
    "AsyncioScheduler",
    "ConfigError",
    "DirectProber",
    "ErrorKind",
    "Failed",
    "HealthState",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpxClient",
    "MonitorSettings",
    "PollingController",
    "ProbeOutcome",
    "Pulsewatch",
    "PulsewatchError",
    "Relay",
    "RelayError",
    "RelayProber",
    "Responded",
    "StatusSnapshot",
    "StubHttpClient",
    "Verdict",
    "build_envelope",
    "categorize_exception",
    "check_once",
    "classify",
    "create_app",
    "create_default_http_client",
    "create_prober",
    "detect_error_page",
    "load_settings",
    "outcome_from_envelope",
    "serve_relay",
    "setup_logging",
    "status_label",
    "transition",
    "__version__",
]
