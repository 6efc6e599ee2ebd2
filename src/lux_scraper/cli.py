from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import BatchConfig, DaemonConfig, Settings, load_settings
from .daemon import ContinuousDaemon
from .errors import FatalInitError
from .http import create_session
from .models import SECTORS, FetchContext
from .notify import Notifier
from .pacing import Pacer
from .paths import ensure_data_dirs
from .renderer import BrowserSession, IsolatedRenderer
from .run_logger import RunLogger
from .runner import BatchRunner
from .shutdown import ShutdownToken, SignalHandler
from .sources import invoke
from .sources.registry import get_source, list_sources
from .store import create_store
from .time_utils import run_stamp, utc_now


def main() -> int:
    parser = argparse.ArgumentParser(prog="lux-scraper")
    parser.add_argument("--data-root", type=Path, help="Directory for the sqlite db and logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    daemon_parser = subparsers.add_parser("daemon", help="Run the continuous scraper")
    daemon_parser.add_argument(
        "--max-cycles",
        type=int,
        help="Stop after this many sources (default: run until signalled)",
    )

    run_parser = subparsers.add_parser("run", help="Run every source once and sync")
    run_parser.add_argument("--now", action="store_true", help="Skip the startup jitter")

    sources_parser = subparsers.add_parser("sources", help="List sources")
    sources_parser.add_argument("--json", action="store_true", help="JSON output")

    scrape_parser = subparsers.add_parser("scrape", help="Run one source without saving")
    scrape_parser.add_argument("name")
    scrape_parser.add_argument("--json", action="store_true", help="JSON output")

    articles_parser = subparsers.add_parser("articles", help="List stored articles")
    filters = articles_parser.add_mutually_exclusive_group()
    filters.add_argument("--sector", choices=SECTORS, default="luxury")
    filters.add_argument("--source")
    articles_parser.add_argument("--limit", type=int)
    articles_parser.add_argument("--json", action="store_true", help="JSON output")

    args = parser.parse_args()

    if args.command == "sources":
        return _print_sources(args.json)

    settings = load_settings(args.data_root)
    if args.command == "scrape":
        return _scrape_one(settings, args.name, args.json)

    ensure_data_dirs(settings.data_root)
    try:
        if args.command == "daemon":
            return _run_daemon(settings, args.max_cycles)
        if args.command == "run":
            return _run_batch(settings, args.now)
        if args.command == "articles":
            return _print_articles(settings, args.sector, args.source, args.limit, args.json)
    except FatalInitError as exc:
        print(f"fatal: {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


def _run_daemon(settings: Settings, max_cycles: int | None) -> int:
    logger = RunLogger(settings.data_root, run_stamp(), mode="daemon")
    try:
        store = create_store(settings)
    except FatalInitError as exc:
        logger.log(f"daemon init failed error={exc}")
        raise
    token = ShutdownToken()
    renderer = BrowserSession(settings.chromium_path, settings.blocked_resource_types)
    daemon = ContinuousDaemon(
        store,
        renderer,
        logger,
        Pacer(token),
        session=create_session(),
        config=DaemonConfig(max_cycles=max_cycles),
    )
    try:
        with SignalHandler(token, logger, lambda: daemon.current):
            daemon.run()
    finally:
        store.close()
    return 0


def _run_batch(settings: Settings, skip_jitter: bool) -> int:
    logger = RunLogger(settings.data_root, run_stamp(), mode="run")
    logger.log(f"run start environment={settings.environment} store={settings.store_backend}")
    try:
        store = create_store(settings)
    except FatalInitError as exc:
        logger.log(f"run init failed error={exc}")
        raise
    token = ShutdownToken()
    runner = BatchRunner(
        store,
        IsolatedRenderer(settings.chromium_path, settings.blocked_resource_types),
        logger,
        Pacer(token),
        Notifier.from_settings(settings, logger),
        session=create_session(),
        config=BatchConfig(enable_jitter=settings.is_production and not skip_jitter),
    )
    try:
        with SignalHandler(token, logger, lambda: runner.current):
            runner.run()
    finally:
        store.close()
    return 0


def _print_sources(as_json: bool) -> int:
    sources = list_sources()
    if as_json:
        payload = [
            {
                "name": source.name,
                "kind": source.kind,
                "sector": source.sector,
                "weight": source.weight,
                "enabled": source.enabled,
            }
            for source in sources
        ]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for source in sources:
            suffix = "" if source.enabled else " [disabled]"
            print(f"- {source.name} ({source.kind}, {source.sector}, weight={source.weight}){suffix}")
    return 0


def _scrape_one(settings: Settings, name: str, as_json: bool) -> int:
    try:
        entry = get_source(name)
    except KeyError as exc:
        print(str(exc.args[0]), file=sys.stderr)
        return 2
    renderer = IsolatedRenderer(settings.chromium_path, settings.blocked_resource_types)
    ctx = FetchContext(session=create_session(), renderer=renderer, now=utc_now())
    result = invoke(entry, ctx)
    if as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(f"{result.source}: status={result.status} count={result.count} duration_ms={result.duration_ms}")
        if result.error:
            print(f"error: {result.error}")
        for item in result.items:
            print(f"- {item.title}")
            print(f"  {item.url} ({item.time})")
    return 1 if result.status == "error" else 0


def _print_articles(
    settings: Settings,
    sector: str,
    source: str | None,
    limit: int | None,
    as_json: bool,
) -> int:
    store = create_store(settings)
    try:
        if source:
            articles = store.get_articles_by_source(source, limit=limit or 50)
        else:
            articles = store.get_articles(sector, limit=limit or 100)
    finally:
        store.close()
    if as_json:
        print(json.dumps([article.to_dict() for article in articles], ensure_ascii=False, indent=2))
        return 0
    for article in articles:
        marker = "*" if article.deep_scraped else " "
        print(f"{marker} [{article.source}] {article.title}")
        print(f"    {article.url} ({article.time})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
