# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for pulsewatch."""

import os
from dataclasses import dataclass

from .errors import ConfigError

DEFAULT_TARGET_URL = "https://test.kreasibisnisdigital.com/"
DEFAULT_SERVER_NAME = "Laragon Server"
DEFAULT_USER_AGENT = "PWA-Server-Monitor/1.0"
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_str_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class MonitorSettings:
    """Monitor, probe and relay defaults. Durations are in seconds."""

    target_url: str = DEFAULT_TARGET_URL
    server_name: str = DEFAULT_SERVER_NAME
    check_interval: float = 30.0
    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    verify_ssl: bool = True
    allow_redirects: bool = True
    max_body_bytes: int = 4 * 1024 * 1024
    snippet_bytes: int = 2048
    relay_url: str | None = None
    relay_host: str = "127.0.0.1"
    relay_port: int = 8080

    @classmethod
    def from_env(cls) -> "MonitorSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("PULSEWATCH_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        snippet_bytes = _int_env("PULSEWATCH_SNIPPET_BYTES", cls.snippet_bytes)
        if snippet_bytes < 0:
            snippet_bytes = cls.snippet_bytes
        return cls(
            target_url=os.getenv("PULSEWATCH_TARGET_URL", cls.target_url),
            server_name=os.getenv("PULSEWATCH_SERVER_NAME", cls.server_name),
            check_interval=_float_env("PULSEWATCH_CHECK_INTERVAL", cls.check_interval),
            timeout=_float_env("PULSEWATCH_TIMEOUT", cls.timeout),
            user_agent=os.getenv("PULSEWATCH_USER_AGENT", cls.user_agent),
            accept=os.getenv("PULSEWATCH_ACCEPT", cls.accept),
            verify_ssl=_bool_env("PULSEWATCH_VERIFY_SSL", cls.verify_ssl),
            allow_redirects=_bool_env("PULSEWATCH_REDIRECTS", cls.allow_redirects),
            max_body_bytes=max_body_bytes,
            snippet_bytes=snippet_bytes,
            relay_url=_optional_str_env("PULSEWATCH_RELAY_URL"),
            relay_host=os.getenv("PULSEWATCH_RELAY_HOST", cls.relay_host),
            relay_port=_int_env("PULSEWATCH_RELAY_PORT", cls.relay_port),
        )

    def validate(self) -> "MonitorSettings":
        if not self.target_url.startswith(("http://", "https://")):
            raise ConfigError(f"target_url must be an http(s) URL, got {self.target_url!r}")
        if self.check_interval <= 0:
            raise ConfigError("check_interval must be positive")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if not 0 < self.relay_port < 65536:
            raise ConfigError(f"relay_port out of range: {self.relay_port}")
        return self

    @property
    def request_headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept": self.accept}


def load_settings() -> MonitorSettings:
    """Load monitor settings from environment with sensible defaults."""
    return MonitorSettings.from_env()
