#!/usr/bin/env python3
"""One-off Gmail sync for a single user.

Usage:
    python scripts/sync_gmail.py --user-id USER [--max-results N] [--concurrency N] [--timeout S]
        [--enable-auto-sync | --disable-auto-sync] [--no-sync]

Environment variables:
    DATABASE_URL: SQLAlchemy connection string (optional, sqlite by default)
    GMAIL_TOKEN_FILE: OAuth token written by setup_gmail.py
"""
import argparse
import asyncio
import logging
import sys

from jobtrackr.exceptions import JobTrackrError
from jobtrackr.gmail.auth import GmailAuth
from jobtrackr.gmail.client import GmailClient
from jobtrackr.logging_config import setup_logging
from jobtrackr.persistence.database import SessionLocal, get_session, init_db
from jobtrackr.persistence.store import SqlApplicationStore
from jobtrackr.settings import settings
from jobtrackr.sync.orchestrator import SyncOptions, sync_job_emails
from jobtrackr.sync.scheduler import SyncStateRepository

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import job application emails from Gmail.")
    parser.add_argument("--user-id", required=True, help="Owner of the imported applications.")
    parser.add_argument(
        "--max-results",
        type=int,
        default=settings.gmail_max_results,
        help="Maximum candidate emails to fetch (default: %(default)s).",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.gmail_fetch_concurrency,
        help="Parallel message fetches, 1-5 (default: %(default)s).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.gmail_fetch_timeout_seconds,
        help="Per-message fetch timeout in seconds (default: %(default)s).",
    )
    toggle = parser.add_mutually_exclusive_group()
    toggle.add_argument(
        "--enable-auto-sync",
        dest="auto_sync",
        action="store_true",
        default=None,
        help="Turn on daily automatic sync for this user.",
    )
    toggle.add_argument(
        "--disable-auto-sync",
        dest="auto_sync",
        action="store_false",
        help="Turn off automatic sync for this user.",
    )
    parser.add_argument(
        "--no-sync",
        action="store_true",
        help="Only apply --enable/--disable-auto-sync, skip the sync.",
    )
    return parser.parse_args(argv)


async def main(argv=None):
    """Run a single sync and print the counts."""
    setup_logging(level=settings.log_level, app_level=settings.app_log_level)
    args = parse_args(argv)

    init_db()

    if args.auto_sync is not None:
        with get_session() as session:
            SyncStateRepository(session).set_auto_sync(args.user_id, args.auto_sync)
    if args.no_sync:
        return 0

    client = GmailClient(
        GmailAuth(
            credentials_file=settings.gmail_credentials_file,
            token_file=settings.gmail_token_file,
        )
    )
    store = SqlApplicationStore(SessionLocal)
    options = SyncOptions(
        max_results=args.max_results,
        concurrency=args.concurrency,
        fetch_timeout=args.timeout,
    )

    result = await sync_job_emails(args.user_id, client, store, options)

    with get_session() as session:
        SyncStateRepository(session).record_run(args.user_id, result)

    logger.info("Job application emails found: %d", result.total)
    logger.info("New applications: %d", result.new)
    logger.info("Stored: %d", result.stored)
    if result.fetch_failures:
        logger.info("Emails that could not be fetched: %d", result.fetch_failures)
    for record in result.applications:
        logger.info("  %s - %s (%s)", record.company_name, record.job_role, record.status)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        sys.exit(1)
    except JobTrackrError as e:
        logger.error("Sync failed: %s", e)
        sys.exit(1)
