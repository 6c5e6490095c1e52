"""
lingocache - operator command line.

Commands:
    translate-all <lang> <pages.yaml>   Pre-translate pages into the cache
    clear-cache [--language LANG]       Purge one language or everything
    stats                               Entry counts and sizes per language
    check-config                        Report missing credentials

Usage:
    python -m lingocache.main stats
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from lingocache.config import Settings, get_settings
from lingocache.core.errors import ConfigurationMissing, StoreUnavailable
from lingocache.i18n.invalidator import CacheInvalidator
from lingocache.i18n.languages import get_native_name
from lingocache.i18n.stats import collect_cache_stats
from lingocache.i18n.translator import create_orchestrator
from lingocache.i18n.warmup import load_pages, warm_page_cache
from lingocache.integrations.audit import LoggingAuditSink
from lingocache.storage import create_store

logger = logging.getLogger("lingocache")


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Commands
# =============================================================================


async def cmd_translate_all(settings: Settings, args: argparse.Namespace) -> int:
    orchestrator = create_orchestrator(settings, audit=LoggingAuditSink())
    if not orchestrator.config.is_active(args.language):
        print(f"Language '{args.language}' is not active", file=sys.stderr)
        return 2

    pages = load_pages(args.pages)
    stats = await warm_page_cache(
        orchestrator, pages, languages=[args.language], concurrency=args.concurrency
    )

    print(f"Translated {stats.translated} page(s) to {get_native_name(args.language)}")
    print(f"  cached: {stats.cached}  skipped: {stats.skipped}  failed: {stats.errors}")
    return 1 if stats.errors else 0


async def cmd_clear_cache(settings: Settings, args: argparse.Namespace) -> int:
    store = create_store(settings)
    invalidator = CacheInvalidator(store, settings.language_config())
    if args.language:
        count = await invalidator.purge_language(args.language)
    else:
        count = await invalidator.purge_all()
    print(f"Deleted {count} cached translation(s)")
    return 0


async def cmd_stats(settings: Settings, args: argparse.Namespace) -> int:
    store = create_store(settings)
    stats = await collect_cache_stats(store, args.language)
    print(f"Total: {stats.total_entries} entries, {stats.total_bytes} bytes")
    for lang, per_lang in sorted(stats.languages.items()):
        print(f"  {lang} ({get_native_name(lang)}): {per_lang.count} entries, {per_lang.size} bytes")
    return 0


async def cmd_check_config(settings: Settings, args: argparse.Namespace) -> int:
    missing = settings.missing_configuration()
    if missing:
        for name in missing:
            print(f"Missing: {name}")
        return 1

    store = create_store(settings)
    if not await store.healthcheck():
        print("Cache store round-trip failed")
        return 1
    print("Configuration OK")
    return 0


COMMANDS = {
    "translate-all": cmd_translate_all,
    "clear-cache": cmd_clear_cache,
    "stats": cmd_stats,
    "check-config": cmd_check_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lingocache",
        description="Translation cache maintenance",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    translate_all = sub.add_parser("translate-all", help="Pre-translate pages into the cache")
    translate_all.add_argument("language", help="Target language code")
    translate_all.add_argument("pages", help="YAML file listing pages (url, content)")
    translate_all.add_argument("--concurrency", "-c", type=int, default=4)

    clear = sub.add_parser("clear-cache", help="Purge cached translations")
    clear.add_argument("--language", "-l", help="Only purge this language")

    stats = sub.add_parser("stats", help="Show cache statistics")
    stats.add_argument("--language", "-l", help="Only count this language")

    sub.add_parser("check-config", help="Report missing configuration")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        return asyncio.run(COMMANDS[args.command](settings, args))
    except ConfigurationMissing as e:
        logger.error(str(e))
        return 1
    except StoreUnavailable as e:
        logger.error(f"Cache store unavailable: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
