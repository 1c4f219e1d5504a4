#!/usr/bin/env python3
"""
CLI script for running catalog extraction locally.

Usage:
    python run_extract.py list [--limit 10] [--category electronics] [--force-refresh]
    python run_extract.py enhanced [--limit 30] [--category electronics]
    python run_extract.py detail --url https://www.amazon.com/dp/B09B8V1LZ3
    python run_extract.py status
    python run_extract.py stats
"""

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from extractor.errors import InvalidTargetError
from extractor.service import CatalogService
from shared.logging import configure_logging


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


async def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Extract catalog records")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("list", "enhanced"):
        p = sub.add_parser(name, help=f"{name} listing records")
        p.add_argument("--limit", type=int, default=10)
        p.add_argument("--type", dest="source_type", default="amazon")
        p.add_argument("--category", default="electronics")
        p.add_argument("--force-refresh", action="store_true")

    detail = sub.add_parser("detail", help="Extract a single product page")
    detail.add_argument("--url", required=True)
    detail.add_argument("--force-refresh", action="store_true")

    sub.add_parser("status", help="Show browser session status")
    sub.add_parser("stats", help="Show cache statistics")

    for p in sub.choices.values():
        p.add_argument(
            "--visible",
            action="store_true",
            help="Show browser window (Chrome). Use for local debugging.",
        )

    args = parser.parse_args()

    configure_logging()
    service = CatalogService()
    if args.visible:
        await service.set_browser_mode(True)

    try:
        if args.command in ("list", "enhanced"):
            result = await service.get_records(
                args.limit,
                args.source_type,
                args.category,
                force_refresh=args.force_refresh,
                enhanced=args.command == "enhanced",
            )
            _print_json(result.to_dict())
        elif args.command == "detail":
            try:
                record = await service.get_record_detail(
                    args.url, force_refresh=args.force_refresh
                )
            except InvalidTargetError as e:
                print(f"Invalid URL: {e}", file=sys.stderr)
                sys.exit(2)
            if record is None:
                print("No detail record available", file=sys.stderr)
                sys.exit(1)
            _print_json(record.to_dict())
        elif args.command == "status":
            _print_json(service.get_session_status())
        elif args.command == "stats":
            _print_json(service.store.stats())
    finally:
        await service.shutdown()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
