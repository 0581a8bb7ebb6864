#!/usr/bin/env python3
# backend/scripts/refresh_prices.py
"""
Daily price refresh for every user's assets.

Meant for an external scheduler (cron, CI job) that prefers running the
refresh in-process over calling POST /prices/refresh with the service
role key. Same service, same elevated scope.

Usage:
    python backend/scripts/refresh_prices.py
    python backend/scripts/refresh_prices.py --user-id <uuid> --as-of 2025-06-30

Exit code is 1 when at least one asset failed.
"""
import argparse
import logging
import sys
from pathlib import Path

# Setup path to import wealthtrack modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from wealthtrack.database import SessionLocal
from wealthtrack.dependencies import get_refresh_service
from wealthtrack.services.auth import SERVICE_ROLE_LABEL
from wealthtrack.utils.context import set_caller_id
from wealthtrack.utils.date_utils import parse_date
from wealthtrack.utils.logging import setup_logging

logger = logging.getLogger("refresh_prices")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refresh current prices and record today's history point.")
    parser.add_argument(
        "--user-id",
        default=None,
        help="Only refresh this user's assets (default: all users)",
    )
    parser.add_argument(
        "--as-of",
        type=parse_date,
        default=None,
        help="Day to record the snapshot under, YYYY-MM-DD (default: today UTC)",
    )
    return parser.parse_args(argv)


def refresh_prices(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    set_caller_id(args.user_id or SERVICE_ROLE_LABEL)

    service = get_refresh_service()
    db = SessionLocal()
    try:
        result = service.refresh_prices(db, args.user_id, as_of=args.as_of)
    finally:
        db.close()

    logger.info("=" * 60)
    logger.info(result.message.upper())
    logger.info("=" * 60)
    logger.info(f"  Updated: {result.updated}")
    logger.info(f"  Failed:  {result.failed}")
    for failure in result.failures:
        logger.info(f"    {failure.symbol} ({failure.asset_id}): {failure.reason}")
    logger.info("=" * 60)

    return 1 if result.failed else 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(refresh_prices())
