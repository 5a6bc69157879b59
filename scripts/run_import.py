"""
Run a Shopify catalog import from the command line.

Usage:
    # Pull the catalog and import it
    python scripts/run_import.py --credentials 1 --locale en_US --channel default --currency USD

    # Only pull the catalog into batches
    python scripts/run_import.py --job-id 42 --validate-only

    # Process the pending batches of an earlier job
    python scripts/run_import.py --job-id 42 --run-only
"""

import argparse
import os
import sys
from uuid import uuid4

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

import structlog

from config import settings, configure_logging
from models.connector import ImportFilters
from models.import_batch import ImportJob
from services.import_service import get_import_service
from exceptions import AppError

logger = structlog.get_logger(__name__)


def build_job(args: argparse.Namespace) -> ImportJob:
    return ImportJob(
        id=args.job_id or uuid4().hex,
        filters=ImportFilters(
            credentials=args.credentials,
            locale=args.locale,
            channel=args.channel,
            currency=args.currency,
        ),
    )


def main():
    parser = argparse.ArgumentParser(
        description="Import Shopify products into the PIM."
    )
    parser.add_argument(
        "--job-id",
        default="",
        help="Import job id (generated when omitted)",
    )
    parser.add_argument(
        "--credentials",
        default=None,
        help="Shopify credential id (default: IMPORT_CREDENTIALS_ID)",
    )
    parser.add_argument(
        "--locale",
        default=None,
        help=f"Locale code (default: {settings.import_locale})",
    )
    parser.add_argument(
        "--channel",
        default=None,
        help=f"Channel code (default: {settings.import_channel})",
    )
    parser.add_argument(
        "--currency",
        default=None,
        help=f"Currency code (default: {settings.import_currency})",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--validate-only",
        action="store_true",
        help="Pull the catalog into batches without importing",
    )
    mode.add_argument(
        "--run-only",
        action="store_true",
        help="Process the pending batches of an existing job",
    )

    args = parser.parse_args()

    if args.run_only and not args.job_id:
        print("ERROR: --job-id is required with --run-only.")
        sys.exit(1)

    configure_logging(settings)
    job = build_job(args)
    service = get_import_service()

    try:
        if args.validate_only:
            batches = service.validate(job)
            print(f"Job {job.id}: {len(batches)} batches saved")
            sys.exit(0)

        result = service.run(job) if args.run_only else service.import_job(job)
    except AppError as e:
        logger.error("import_failed", job_id=job.id, code=e.code, message=e.message)
        print(f"ERROR: {e.message}")
        sys.exit(1)

    summary = result.summary
    print(
        f"Job {result.job_id}: {result.batches} batches, "
        f"{summary.created} created, {summary.updated} updated, {summary.skipped} skipped"
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
