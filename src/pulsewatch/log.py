# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for pulsewatch."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("PULSEWATCH_LOG_LEVEL", "WARNING").upper()

# Per-request chatter from the HTTP stack; a poll every few seconds floods DEBUG output otherwise.
CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None, *, quiet_http: bool = True) -> None:
    """Configure standard logging for CLI/library use."""
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    numeric_level = getattr(logging, effective_level, logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if quiet_http:
        for name in CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def uvicorn_log_level() -> str:
    """Uvicorn level name matching the pulsewatch logger's effective level."""
    level = logging.getLogger("pulsewatch").getEffectiveLevel()
    return logging.getLevelName(level).lower() if level >= logging.DEBUG else "info"


__all__ = ["setup_logging", "uvicorn_log_level"]
