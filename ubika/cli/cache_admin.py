"""
Cache maintenance CLI.

Operates on the configured cache backend (REDIS_URL, or the in-memory
fallback, which is only useful for dry runs) and on the read-model.

Usage:
    ubika-cache clear-pattern "v1:properties:list:*"
    ubika-cache clear-all
    ubika-cache keys "v1:property:*"
    ubika-cache stats
    ubika-cache flush --yes
    ubika-cache sync-dry-run [PROPERTY_ID]
    ubika-cache sync PROPERTY_ID
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

from ubika.cache import CACHE_KEYS, CacheClient, create_backend
from ubika.config import ConfigurationError, get_settings
from ubika.db import db
from ubika.logging import configure_logging
from ubika.read_model import (
    BaseUrlImageResolver,
    IdentityImageResolver,
    SyncParams,
    build_and_upsert,
    create_document_store,
)
from ubika.services import PropertyNotFoundError, sync_property

load_dotenv()

FIXTURE_PROPERTY = {
    "title": "Charming test property",
    "description": (
        "A lovely test property used for dry-run validation. "
        "Large description to ensure summary works. "
    )
    * 3,
    "price": 350000,
    "square_meters": 110,
    "city": "Testville",
    "country": "Testland",
    "state": "TS",
    "zip_code": "12345",
    "operation_status_id": 1,
}

FIXTURE_IMAGES = [
    {"id": "img-1", "image_url": "https://example.com/img-1.jpg", "is_cover": True, "display_order": 1},
    {"id": "img-2", "image_url": "https://example.com/img-2.jpg", "is_cover": False, "display_order": 2},
]

FIXTURE_FEATURES = [{"id": 1, "name": "Pool"}, {"id": 2, "name": "Garage"}]


class _NoopSink:
    async def upsert_property_document(self, property_id, doc):
        return None


class _NoopCache:
    async def delete(self, key):
        return None

    async def invalidate_pattern(self, pattern):
        return 0


def _client() -> CacheClient:
    return CacheClient(create_backend(get_settings().redis_url))


async def cmd_clear_pattern(args) -> int:
    """Invalidate one or more key patterns."""
    cache = _client()
    try:
        for pattern in args.patterns:
            matched = await cache.invalidate_pattern(pattern)
            print(f"{pattern}: {matched} keys")
    finally:
        await cache.close()
    return 0


async def cmd_clear_all(args) -> int:
    """Invalidate every key of the current version."""
    cache = _client()
    try:
        pattern = CACHE_KEYS.namespace_pattern()
        matched = await cache.invalidate_pattern(pattern)
        print(f"Cleared {matched} keys matching {pattern}")
    finally:
        await cache.close()
    return 0


async def cmd_keys(args) -> int:
    """List keys matching a pattern."""
    cache = _client()
    try:
        keys = sorted(await cache.backend.keys(args.pattern))
        for key in keys[: args.limit]:
            print(key)
        print(f"\n{len(keys)} keys")
    finally:
        await cache.close()
    return 0


async def cmd_stats(args) -> int:
    """Show backend health and key count."""
    cache = _client()
    try:
        health = await cache.health_check()
        print(f"Backend: {health['backend']}")
        print(f"Shared: {health['shared']}")
        print(f"Available: {health['available']}")
        if health["available"]:
            print(f"Keys: {await cache.backend.dbsize()}")
    finally:
        await cache.close()
    return 0


async def cmd_flush(args) -> int:
    """Drop every key in the backend database."""
    if not args.yes:
        print("Refusing to flush without --yes", file=sys.stderr)
        return 1
    cache = _client()
    try:
        await cache.backend.flushdb()
        print("Cache flushed")
    finally:
        await cache.close()
    return 0


async def cmd_sync_dry_run(args) -> int:
    """Build a document from a fixture property and print it. Touches nothing."""
    fixture = {**FIXTURE_PROPERTY, "id": args.property_id}
    result = await build_and_upsert(
        SyncParams(
            property=fixture,
            images=FIXTURE_IMAGES,
            features=FIXTURE_FEATURES,
            resolver=IdentityImageResolver(),
            sink=_NoopSink(),
            cache=_NoopCache(),
            default_currency=get_settings().default_currency,
        )
    )
    print("Dry-run denormalized document:")
    print(json.dumps(result.doc, indent=2))
    return 0


async def cmd_sync(args) -> int:
    """Sync one property from the database into the read-model."""
    settings = get_settings()
    db.initialize(settings.database_url)
    store = create_document_store()
    cache = _client()
    try:
        result = await sync_property(
            args.property_id,
            database=db,
            sink=store,
            cache=cache,
            resolver=BaseUrlImageResolver(settings.image_base_url),
            default_currency=settings.default_currency,
        )
    except PropertyNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        await cache.close()

    print(f"Synced {args.property_id} ({len(result.doc.get('images', []))} images)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ubika-cache", description="Ubika cache and read-model maintenance"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    clear_parser = subparsers.add_parser("clear-pattern", help="Invalidate key patterns")
    clear_parser.add_argument("patterns", nargs="+", help="Glob patterns (e.g. 'v1:property:*')")

    subparsers.add_parser("clear-all", help="Invalidate every key of the current version")

    keys_parser = subparsers.add_parser("keys", help="List keys matching a pattern")
    keys_parser.add_argument("pattern", nargs="?", default="*")
    keys_parser.add_argument("--limit", type=int, default=100, help="Maximum keys to print")

    subparsers.add_parser("stats", help="Show backend status")

    flush_parser = subparsers.add_parser("flush", help="Flush the whole backend database")
    flush_parser.add_argument("--yes", action="store_true", help="Confirm the flush")

    dry_run_parser = subparsers.add_parser("sync-dry-run", help="Print a document built from a fixture")
    dry_run_parser.add_argument("property_id", nargs="?", default="prop-fixture-1")

    sync_parser = subparsers.add_parser("sync", help="Sync a property into the read-model")
    sync_parser.add_argument("property_id")

    return parser


COMMANDS = {
    "clear-pattern": cmd_clear_pattern,
    "clear-all": cmd_clear_all,
    "keys": cmd_keys,
    "stats": cmd_stats,
    "flush": cmd_flush,
    "sync-dry-run": cmd_sync_dry_run,
    "sync": cmd_sync,
}


def main(argv=None) -> int:
    """Main entry point with CLI interface."""
    configure_logging(level="WARNING")
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return asyncio.run(command(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
