"""Auto-billing job.

Entry point for cron hosts that run the billing pass directly instead of
calling the HTTP trigger:

    python -m autobilling.jobs.auto_billing [--date YYYY-MM-DD]

Prints the run response as JSON. Exits with status 1 if the run cannot start.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from autobilling.core.exceptions import BillingRunError
from autobilling.core.logging import setup_logging
from autobilling.db.session import init_db, close_db
from autobilling.deps.di_container import build_container
from autobilling.schemas.billing import RunErrorResponse

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create payments for due recurring stakeholder services.")
    parser.add_argument(
        "--date",
        dest="run_date",
        type=date.fromisoformat,
        default=None,
        help="Run date (YYYY-MM-DD), defaults to today",
    )
    return parser.parse_args(argv)


async def run(run_date: Optional[date] = None) -> dict:
    """Execute one billing pass and return the response body."""
    await init_db()
    try:
        controller = build_container().auto_billing_controller()
        response = await controller.run(run_date)
        return response.model_dump(mode="json")
    finally:
        await close_db()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        body = asyncio.run(run(args.run_date))
    except BillingRunError as exc:
        logger.error(f"Auto-billing run failed: {exc.message}")
        print(json.dumps(RunErrorResponse(error=exc.message).model_dump()))
        return 1

    print(json.dumps(body))
    return 0


if __name__ == "__main__":
    sys.exit(main())
