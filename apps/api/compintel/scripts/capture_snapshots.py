"""
Capture inventory snapshots from the command line.

Meant to run right after a scrape finishes, e.g. from the scraper's cron job:

    python -m compintel.scripts.capture_snapshots muv trulieve
"""
import argparse
import logging
import sys
from datetime import date

from compintel.core.config import get_settings
from compintel.core.dispensaries import ALL_DISPENSARIES, resolve_dispensaries
from compintel.core.errors import CompIntelError
from compintel.core.snapshot_day import get_snapshot_date
from compintel.db.session import SessionLocal
from compintel.services.snapshot import SnapshotService

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Copy live competitor inventory into inventory_snapshots")
    parser.add_argument(
        "dispensaries",
        nargs="+",
        help="Dispensary keys: " + ", ".join(d.key for d in ALL_DISPENSARIES),
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Snapshot date (YYYY-MM-DD), defaults to today in SNAPSHOT_TIMEZONE",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)

    try:
        dispensaries = [d for key in args.dispensaries for d in resolve_dispensaries(key, ALL_DISPENSARIES, allow_all=False)]
    except CompIntelError as e:
        logger.error(e.message)
        return 2

    snapshot_date = args.date or get_snapshot_date(timezone=settings.SNAPSHOT_TIMEZONE)
    failures = 0

    db = SessionLocal()
    try:
        service = SnapshotService(db)
        for dispensary in dispensaries:
            try:
                result = service.capture(dispensary, snapshot_date)
            except CompIntelError as e:
                logger.error(f"{dispensary.key}: {e.message}")
                failures += 1
                continue
            print(f"{dispensary.key}: {result.records_created} records for {snapshot_date}")
    finally:
        db.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
