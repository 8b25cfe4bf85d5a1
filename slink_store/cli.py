"""
slink-store command line

Usage:
  slink-store --backend sqlite --sqlite-path slink.db migrate
  slink-store shorten https://example.com --alias docs
  slink-store alias promo aaa111
  slink-store resolve docs
  slink-store list --offset 0 --limit 50
  slink-store bloom-rebuild --capacity 100000 --error-rate 0.01
  slink-store bloom-info
  slink-store seed --count 2000 --prefix mk

Exit codes: 0 ok, 1 storage error, 2 usage / validation error.
"""
import argparse
import logging
import sys
import time
from typing import List, Optional

from slink_store.config import settings
from slink_store.errors import StorageError
from slink_store.logging_config import configure_logging
from slink_store.manager.slink_manager import SlinkManager
from slink_store.manager.strategies import SequentialStrategy
from slink_store.models import Outcome
from slink_store.storage.storage_factory import get_storage

log = logging.getLogger("slink_store.cli")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="slink-store", description="Content-addressed short-URL store")
    ap.add_argument("--backend", default=None, help="memory | sqlite | postgres (default: SLINK_STORAGE_BACKEND)")
    ap.add_argument("--dsn", default=None, help="PostgreSQL DSN (default: SLINK_DB_DSN)")
    ap.add_argument("--sqlite-path", default=None, help="SQLite file (default: SLINK_SQLITE_PATH)")
    ap.add_argument("--log-level", default=None)
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("migrate", help="create tables and the union view")

    p = sub.add_parser("shorten", help="store a URL and print its code")
    p.add_argument("url")
    p.add_argument("--alias", default=None)

    p = sub.add_parser("alias", help="attach an alias to a canonical code")
    p.add_argument("alias")
    p.add_argument("code")

    p = sub.add_parser("resolve", help="print the URL behind a code or alias")
    p.add_argument("code")
    p.add_argument("--bloom", action="store_true", help="consult the bloom snapshot first")

    p = sub.add_parser("list", help="page through canonical and alias codes")
    p.add_argument("--offset", type=int, default=0)
    p.add_argument("--limit", type=int, default=100)

    p = sub.add_parser("bloom-rebuild", help="rebuild and save the bloom snapshot")
    p.add_argument("--name", default=settings.BLOOM_NAME)
    p.add_argument("--capacity", type=int, default=100_000)
    p.add_argument("--error-rate", type=float, default=0.01)

    p = sub.add_parser("bloom-info", help="show the stored bloom snapshot")
    p.add_argument("--name", default=settings.BLOOM_NAME)

    p = sub.add_parser("seed", help="insert COUNT synthetic URLs with sequential codes")
    p.add_argument("--count", type=int, default=2000)
    p.add_argument("--prefix", default="mk")
    p.add_argument("--start", type=int, default=1_000_000)
    return ap


def _seed(manager: SlinkManager, count: int, prefix: str, start: int) -> None:
    strategy = SequentialStrategy(start=start, min_length=6, prefix=prefix)
    created = 0
    t0 = time.perf_counter()
    for i in range(count):
        outcome, _ = manager.storage.upsert(strategy.generate(), f"https://example.com/{start + i}")
        if outcome is Outcome.CREATED:
            created += 1
    dt = time.perf_counter() - t0
    print(f"INSERTED: {created}/{count} rows in {dt:.3f} s")
    if dt > 0:
        print(f"RPS: {count / dt:.1f} rows/s")


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    kwargs = {}
    if args.dsn:
        kwargs["dsn"] = args.dsn
    if args.sqlite_path:
        kwargs["path"] = args.sqlite_path

    try:
        storage = get_storage(args.backend, **kwargs)
        manager = SlinkManager(storage=storage)

        if args.command == "migrate":
            storage.migrate()
            print("schema ready")
        elif args.command == "shorten":
            record = manager.shorten(args.url, alias=args.alias)
            print(record.code)
        elif args.command == "alias":
            manager.add_alias(args.alias, args.code)
            print(args.alias)
        elif args.command == "resolve":
            if args.bloom:
                manager.load_bloom()
            print(manager.resolve(args.code))
        elif args.command == "list":
            for code in storage.list_codes(offset=args.offset, limit=args.limit):
                print(code)
        elif args.command == "bloom-rebuild":
            n = manager.rebuild_bloom(args.name, capacity=args.capacity, error_rate=args.error_rate)
            print(f"{args.name}: {n} codes")
        elif args.command == "bloom-info":
            snapshot = storage.get_bloom_snapshot(args.name)
            if snapshot is None:
                print(f"{args.name}: no snapshot")
            else:
                print(f"{args.name}: {len(snapshot.data)} bytes, updated {snapshot.updated_at.isoformat()}")
        elif args.command == "seed":
            _seed(manager, args.count, args.prefix, args.start)
    except StorageError as e:
        log.error("%s", e)
        return 1
    except ValueError as e:
        log.error("%s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
