import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
import logging

from listing_lifecycle.db.engine import engine
from listing_lifecycle.db.readers.dependents import (
    count_dependent_records,
    find_orphaned_dependents,
)
from listing_lifecycle.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    """
    Print payments, reviews and notifications that point at missing listings.

    With --listing-id, print how many dependent rows still reference that one
    listing instead (zero everywhere after a clean delete).
    """
    parser = argparse.ArgumentParser(description="Audit dependent records left by listing deletes")
    parser.add_argument("--listing-id", help="Check a single deleted listing")
    parser.add_argument("--payment-id", help="Payment id of that listing")
    args = parser.parse_args()

    try:
        with engine.connect() as conn:
            if args.listing_id:
                report = count_dependent_records(conn, args.listing_id, args.payment_id)
            else:
                report = find_orphaned_dependents(conn)
    except Exception:
        logger.exception("Orphan audit failed")
        raise

    print(json.dumps(report, indent=2, default=str))

    if args.listing_id:
        remaining = sum(report.values())
    else:
        remaining = sum(len(rows) for rows in report.values())
    logger.info("Orphan audit found %s dependent rows", remaining)


if __name__ == "__main__":
    main()
