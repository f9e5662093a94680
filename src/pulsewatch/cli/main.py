# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""pulsewatch CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from ..config import MonitorSettings, load_settings
from ..errors import ConfigError
from ..log import setup_logging
from ..models.verdict import HealthState, StatusSnapshot, Verdict
from ..relay import serve_relay
from ..runtime import Pulsewatch

_STATE_MARKS = {
    HealthState.ONLINE: "UP",
    HealthState.OFFLINE: "DOWN",
    HealthState.CHECKING: "..",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Single-target HTTP liveness monitor")
    parser.add_argument("--url", help="Target URL (overrides PULSEWATCH_TARGET_URL)")
    parser.add_argument("--relay-url", help="Probe through a pulsewatch relay instead of directly")
    parser.add_argument("--timeout", type=float, help="Probe deadline in seconds")
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    parser.add_argument("--log-level", help="Logging level (default from PULSEWATCH_LOG_LEVEL)")

    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Probe once and print the verdict")
    check.add_argument("--json", action="store_true", help="Output JSON instead of a one-line summary")

    watch = sub.add_parser("watch", help="Probe on a fixed interval and print every status change")
    watch.add_argument("--interval", type=float, help="Seconds between probes")
    watch.add_argument("--count", type=int, default=0, help="Stop after this many classified verdicts (0 = forever)")
    watch.add_argument("--json", action="store_true", help="Output one JSON object per line")

    relay = sub.add_parser("relay", help="Serve the CORS relay")
    relay.add_argument("--host", help="Bind address")
    relay.add_argument("--port", type=int, help="Bind port")
    return parser


def _settings_from_args(args: argparse.Namespace) -> MonitorSettings:
    settings = load_settings()
    if args.url:
        settings.target_url = args.url
    if args.relay_url:
        settings.relay_url = args.relay_url
    if args.timeout is not None:
        settings.timeout = args.timeout
    if args.ignore_ssl_errors:
        settings.verify_ssl = False
    if getattr(args, "interval", None) is not None:
        settings.check_interval = args.interval
    if getattr(args, "host", None):
        settings.relay_host = args.host
    if getattr(args, "port", None) is not None:
        settings.relay_port = args.port
    return settings.validate()


def format_verdict(verdict: Verdict) -> str:
    elapsed = f" ({verdict.elapsed_ms}ms)" if verdict.elapsed_ms is not None else ""
    return f"[{_STATE_MARKS[verdict.state]}] {verdict.reason}{elapsed}"


def format_snapshot(snapshot: StatusSnapshot) -> str:
    stamp = snapshot.last_checked.astimezone().strftime("%H:%M:%S") if snapshot.last_checked else "--:--:--"
    return f"{stamp} {format_verdict(snapshot.verdict)}"


def _print_json(payload: dict[str, Any], *, indent: int | None = 2) -> None:
    json.dump(payload, sys.stdout, indent=indent, sort_keys=True)
    sys.stdout.write("\n")
    sys.stdout.flush()


async def _run_check(settings: MonitorSettings, as_json: bool) -> int:
    async with Pulsewatch(settings) as monitor:
        verdict = await monitor.check()
    if as_json:
        _print_json({**verdict.to_dict(), "server_url": settings.target_url})
    else:
        print(f"{settings.server_name} <{settings.target_url}>")
        print(format_verdict(verdict))
    return 0 if verdict.is_online else 1


async def _run_watch(settings: MonitorSettings, count: int, as_json: bool) -> int:
    done = asyncio.Event()
    seen = 0
    last: StatusSnapshot | None = None

    def sink(snapshot: StatusSnapshot) -> None:
        nonlocal seen, last
        last = snapshot
        if as_json:
            _print_json(snapshot.to_dict(), indent=None)
        else:
            print(format_snapshot(snapshot), flush=True)
        if snapshot.verdict.state != HealthState.CHECKING:
            seen += 1
            if count and seen >= count:
                done.set()

    async with Pulsewatch(settings) as monitor:
        controller = monitor.controller(sink)
        controller.start()
        try:
            await done.wait()
        finally:
            controller.stop()
    return 0 if last is not None and last.verdict.is_online else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = _settings_from_args(args)
    except ConfigError as exc:
        parser.error(str(exc))

    if args.command == "relay":
        serve_relay(settings)
        return 0

    try:
        if args.command == "check":
            return asyncio.run(_run_check(settings, args.json))
        return asyncio.run(_run_watch(settings, args.count, args.json))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
