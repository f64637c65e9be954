"""
Process Due Drops Script

Settles every active subscription whose next drop falls on the given day,
debiting each owner's food money. Intended to run once a day from cron.

Usage:
    cd backend
    python scripts/process_due_drops.py [--date YYYY-MM-DD]
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.settings import settings
from app.domain.services import SubscriptionService
from app.infrastructure.db.database import close_db, get_session_context
from app.infrastructure.db.repositories import SubscriptionRepository, WalletRepository

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Process installment drops due on a day")
    parser.add_argument(
        "--date",
        type=lambda value: datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc),
        default=None,
        help="Day to process in UTC (default: today)",
    )
    return parser.parse_args(argv)


async def process_due_drops(on_date: Optional[datetime] = None) -> int:
    """Run one batch; returns the number of failed subscriptions."""
    async with get_session_context() as session:
        service = SubscriptionService(
            SubscriptionRepository(session),
            WalletRepository(session),
        )
        summary = await service.process_due_drops(
            on_date=on_date,
            limit=settings.auto_drop_batch_limit,
        )

    logger.info(
        f"Due: {summary.due}, processed: {summary.processed}, "
        f"skipped: {summary.skipped}, failed: {summary.failed}"
    )
    return summary.failed


async def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        failed = await process_due_drops(args.date)
    finally:
        await close_db()
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
