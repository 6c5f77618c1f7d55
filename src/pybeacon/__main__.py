"""Command line entry point: ``python -m pybeacon``.

Usage
-----
::

    python -m pybeacon serve --port 3000
    python -m pybeacon history 203.0.113.5 --kind location --limit 5
    python -m pybeacon prune --days 7
    python -m pybeacon dump --date 2026-01-01

Configuration comes from ``BEACON_*`` environment variables (see
:class:`pybeacon.config.BeaconConfig`).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, date, datetime

from pybeacon.config import BeaconConfig
from pybeacon.exceptions import BeaconError
from pybeacon.ingestion.normalize import client_identity
from pybeacon.models.log_entry import LogKind
from pybeacon.storage.event_log import EventLogWriter


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pybeacon", description="Device telemetry beacon collector.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--data-dir", help="Override BEACON_DATA_DIR")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP collector")
    serve.add_argument("--host", help="Bind address (default: BEACON_HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Bind port (default: PORT or 3000)")

    hist = sub.add_parser("history", help="Show logged beacons for one client address")
    hist.add_argument("identity", help="Client address")
    hist.add_argument("--kind", choices=[k.value for k in LogKind], default=LogKind.RECORD.value)
    hist.add_argument("--limit", type=int, default=10)
    hist.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")

    prune = sub.add_parser("prune", help="Delete old day partitions of the event log")
    prune.add_argument("--days", type=int, help="Days to keep (default: BEACON_LOG_RETENTION_DAYS or 7)")

    dump = sub.add_parser("dump", help="Print every logged beacon of one UTC day as JSON lines")
    dump.add_argument("--date", type=date.fromisoformat, help="YYYY-MM-DD (default: today, UTC)")
    return parser


async def _history(config: BeaconConfig, args: argparse.Namespace) -> int:
    log = EventLogWriter(config.log_dir)
    entries = await log.history(client_identity(args.identity), kind=LogKind(args.kind), limit=args.limit)
    if args.json_mode:
        print(json.dumps([entry.model_dump(mode="json") for entry in entries], indent=2, ensure_ascii=False))
        return 0
    if not entries:
        print(f"No logged beacons for {args.identity}")
        return 0
    for entry in entries:
        print(f"{entry.timestamp.isoformat()}  {json.dumps(entry.data, ensure_ascii=False)}")
    return 0


async def _dump(config: BeaconConfig, args: argparse.Namespace) -> int:
    log = EventLogWriter(config.log_dir)
    day = args.date or datetime.now(UTC).date()
    for record in await log.read_day(day):
        print(json.dumps(record.to_json_dict(), ensure_ascii=False))
    return 0


async def _prune(config: BeaconConfig, args: argparse.Namespace) -> int:
    log = EventLogWriter(config.log_dir)
    days = config.log_retention_days if args.days is None else args.days
    removed = await log.prune(days)
    print(f"Removed {len(removed)} partition(s) older than {days} day(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    overrides: dict[str, object] = {}
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.command == "serve":
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port

    try:
        config = BeaconConfig.from_env(**overrides)
        if args.command == "serve":
            from pybeacon.web import run

            run(config)
            return 0
        if args.command == "history":
            return asyncio.run(_history(config, args))
        if args.command == "dump":
            return asyncio.run(_dump(config, args))
        return asyncio.run(_prune(config, args))
    except BeaconError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
