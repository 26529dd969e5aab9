"""Gmail job application sync pipeline.

Search → fetch → decode → classify → extract → dedup → persist. The store
lookup of already-imported message ids completes before any insert, and
every insert is keyed by the Gmail message id, so re-running a sync is safe.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from jobtrackr.exceptions import AuthenticationRequired, MailboxFetchError, StoreInsertError
from jobtrackr.gmail.classifier import is_job_application_email
from jobtrackr.gmail.client import Mailbox
from jobtrackr.gmail.decoder import decode_message
from jobtrackr.gmail.extractor import (
    GMAIL_SOURCE,
    ExtractedApplication,
    HeuristicStatus,
    extract_application,
)
from jobtrackr.gmail.query import DEFAULT_KEYWORDS, JobKeywords, build_search_query
from jobtrackr.persistence.models import ApplicationStatus, utcnow
from jobtrackr.persistence.store import ApplicationRecord, ApplicationStore
from jobtrackr.settings import settings

logger = logging.getLogger(__name__)

MAX_CONCURRENCY = 5

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_POSITION = "Unknown Position"

STATUS_MAP = {
    HeuristicStatus.INTERVIEWING: ApplicationStatus.IN_PROGRESS,
    HeuristicStatus.OFFER: ApplicationStatus.APPROVED,
    HeuristicStatus.REJECTED: ApplicationStatus.REJECTED,
    HeuristicStatus.WAITING: ApplicationStatus.WAITING,
}


def to_canonical_status(status: HeuristicStatus) -> ApplicationStatus:
    """Map an email-derived status onto the stored status vocabulary."""
    return STATUS_MAP.get(status, ApplicationStatus.APPLIED)


@dataclass
class SyncOptions:
    """Per-run tuning for a sync."""

    max_results: int = field(default_factory=lambda: settings.gmail_max_results)
    fetch_timeout: float = field(default_factory=lambda: settings.gmail_fetch_timeout_seconds)
    concurrency: int = field(default_factory=lambda: settings.gmail_fetch_concurrency)
    cancel_event: Optional[asyncio.Event] = None
    # callback(step, detail, pct) for reporting progress to a UI
    on_progress: Optional[Callable[[str, str, float], None]] = None

    def __post_init__(self):
        if self.max_results < 1:
            raise ValueError(f"max_results must be positive, got {self.max_results}")
        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be positive, got {self.fetch_timeout}")
        self.concurrency = max(1, min(self.concurrency, MAX_CONCURRENCY))

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    total: int = 0
    new: int = 0
    stored: int = 0
    applications: list[ApplicationRecord] = field(default_factory=list)
    rejected: int = 0
    fetch_failures: int = 0
    cancelled: bool = False


class GmailSyncService:
    """Import job applications from a mailbox into an application store."""

    def __init__(
        self,
        mailbox: Mailbox,
        store: ApplicationStore,
        keywords: JobKeywords = DEFAULT_KEYWORDS,
    ):
        """
        Args:
            mailbox: Mailbox to search and fetch messages from
            store: Store holding the user's applications
            keywords: Search and classification keywords
        """
        self.mailbox = mailbox
        self.store = store
        self.keywords = keywords

    async def sync(self, user_id: str, options: Optional[SyncOptions] = None) -> SyncResult:
        """
        Run the import pipeline for one user.

        Args:
            user_id: Owner of the imported applications
            options: Run options, defaults from settings

        Returns:
            SyncResult with counts and the stored records

        Raises:
            AuthenticationRequired: If the mailbox has no valid credential
            MailboxSearchError: If the candidate search fails
            StoreQueryError: If existing imports cannot be loaded
        """
        options = options or SyncOptions()

        def _progress(step, detail="", pct=0.0):
            if options.on_progress:
                options.on_progress(step, detail, pct)

        _progress("Connecting", "Checking Gmail credentials...", 0.0)
        self.mailbox.ensure_authenticated()

        _progress("Searching", "Searching for job emails...", 0.05)
        query = build_search_query(self.keywords)
        message_ids = await self.mailbox.search(query, options.max_results)
        logger.info("Found %d candidate emails for user %s", len(message_ids), user_id)

        result = SyncResult()
        extracted = await self._collect(message_ids, options, result, _progress)
        result.total = len(extracted)
        result.cancelled = options.cancelled

        if not extracted:
            _progress("Complete", "No job application emails found.", 1.0)
            return result

        # Must be fully loaded before deciding what to insert
        _progress("Deduplicating", f"Checking {len(extracted)} applications...", 0.9)
        existing = self.store.existing_email_ids(user_id, GMAIL_SOURCE)
        fresh = self._filter_new(extracted, existing)
        result.new = len(fresh)
        logger.info(
            "%d job emails, %d already imported, %d new",
            result.total,
            result.total - result.new,
            result.new,
        )

        _progress("Saving", f"Saving {len(fresh)} new applications...", 0.95)
        for application in fresh:
            record = self._persist(user_id, application)
            if record is not None:
                result.applications.append(record)

        result.stored = len(result.applications)
        if result.stored < result.new:
            logger.warning("Stored %d of %d new applications", result.stored, result.new)

        _progress("Complete", f"Imported {result.stored} new applications.", 1.0)
        return result

    async def _collect(
        self,
        message_ids: list[str],
        options: SyncOptions,
        result: SyncResult,
        progress: Callable,
    ) -> list[ExtractedApplication]:
        """Fetch, classify and extract candidates with bounded concurrency."""
        semaphore = asyncio.Semaphore(options.concurrency)
        done = 0

        async def _run(message_id: str) -> Optional[ExtractedApplication]:
            nonlocal done
            async with semaphore:
                if options.cancelled:
                    return None
                extracted = await self._process_message(message_id, options, result)
                done += 1
                progress(
                    "Processing",
                    f"Email {done}/{len(message_ids)}...",
                    0.1 + (done / len(message_ids)) * 0.8,
                )
                return extracted

        outcomes = await asyncio.gather(
            *(_run(message_id) for message_id in message_ids),
            return_exceptions=True,
        )
        if options.cancelled:
            logger.info("Sync cancelled after %d of %d emails", done, len(message_ids))

        extracted = []
        for message_id, outcome in zip(message_ids, outcomes):
            if isinstance(outcome, AuthenticationRequired):
                raise outcome
            if isinstance(outcome, Exception):
                logger.error("Skipping message %s: %s", message_id, outcome)
                continue
            if outcome is not None:
                extracted.append(outcome)
        return extracted

    async def _process_message(
        self,
        message_id: str,
        options: SyncOptions,
        result: SyncResult,
    ) -> Optional[ExtractedApplication]:
        try:
            raw = await asyncio.wait_for(
                self.mailbox.fetch_full(message_id),
                timeout=options.fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out fetching message %s", message_id)
            result.fetch_failures += 1
            return None
        except MailboxFetchError as e:
            logger.warning("%s", e)
            result.fetch_failures += 1
            return None
        except AuthenticationRequired:
            raise
        except Exception as e:
            # Transport errors from a Mailbox that does not wrap them
            logger.warning("Failed to fetch message %s: %s", message_id, e)
            result.fetch_failures += 1
            return None

        email = decode_message(raw)
        if not email.id:
            email.id = message_id

        if not is_job_application_email(email, self.keywords):
            result.rejected += 1
            return None

        application = extract_application(email)
        logger.debug("Extracted %s: %s", application.company_name, application.job_role)
        return application

    @staticmethod
    def _filter_new(
        extracted: list[ExtractedApplication],
        existing: set[str],
    ) -> list[ExtractedApplication]:
        """Drop applications whose email id is already stored or repeated in this run."""
        seen = set(existing)
        fresh = []
        for application in extracted:
            if application.email_id in seen:
                continue
            seen.add(application.email_id)
            fresh.append(application)
        return fresh

    def _persist(self, user_id: str, application: ExtractedApplication) -> Optional[ApplicationRecord]:
        now = utcnow()
        record = ApplicationRecord(
            user_id=user_id,
            company_name=application.company_name or UNKNOWN_COMPANY,
            job_role=application.job_role or UNKNOWN_POSITION,
            status=to_canonical_status(application.status).value,
            date_applied=application.date_applied,
            notes=application.notes,
            source=GMAIL_SOURCE,
            email_id=application.email_id,
            created_at=now,
            updated_at=now,
        )

        try:
            record.id = self.store.insert(record)
        except StoreInsertError as e:
            logger.error("%s", e)
            return None

        return record


async def sync_job_emails(
    user_id: str,
    mailbox: Mailbox,
    store: ApplicationStore,
    options: Optional[SyncOptions] = None,
) -> SyncResult:
    """Import new job application emails for a user. See GmailSyncService.sync."""
    return await GmailSyncService(mailbox, store).sync(user_id, options)
