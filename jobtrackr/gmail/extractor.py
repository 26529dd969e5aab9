"""Extract structured application fields from job emails."""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from email.utils import parseaddr, parsedate_to_datetime
from enum import Enum
from typing import Callable, Iterable, Optional, TypeVar

from dateutil import parser as dateutil_parser

from jobtrackr.gmail.decoder import ParsedEmail

logger = logging.getLogger(__name__)

K = TypeVar("K")
L = TypeVar("L")

GMAIL_SOURCE = "Gmail"
DEFAULT_ROLE = "Position Not Specified"
DEFAULT_COMPANY = "Unknown Company"


class HeuristicStatus(str, Enum):
    """Status inferred from email wording."""

    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER = "Offer"
    REJECTED = "Rejected"
    WAITING = "Waiting"


@dataclass
class ExtractedApplication:
    """Application fields extracted from a single email."""

    company_name: str
    job_role: str
    status: HeuristicStatus
    date_applied: Optional[datetime]
    email_id: str
    notes: str
    source: str = GMAIL_SOURCE


# Role patterns, tried in order against the subject, then the body
ROLE_PATTERNS = [
    (re.compile(r"position:\s*([^,\n]+)", re.IGNORECASE), "position"),
    (re.compile(r"role:\s*([^,\n]+)", re.IGNORECASE), "role"),
    (re.compile(r"job title:\s*([^,\n]+)", re.IGNORECASE), "job_title"),
    (re.compile(r"position of\s*([^,\n]+)", re.IGNORECASE), "position_of"),
    (re.compile(r"application for\s*([^,\n]+)", re.IGNORECASE), "application_for"),
]

# Status terms in priority order: earlier rows win regardless of where the
# terms appear in the text
STATUS_RULES = [
    (("offer letter", "job offer"), HeuristicStatus.OFFER),
    (("interview",), HeuristicStatus.INTERVIEWING),
    (("rejected", "not moving forward", "not proceeding"), HeuristicStatus.REJECTED),
    (("received", "confirmed"), HeuristicStatus.APPLIED),
]

# "Firstname Lastname" display names are people, not companies
HUMAN_NAME_PATTERN = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$")


def first_match(
    table: Iterable[tuple[K, L]],
    test: Callable[[K], object],
) -> Optional[tuple[L, object]]:
    """
    Evaluate an ordered (key, label) table and return the first hit.

    Args:
        table: Ordered (key, label) pairs
        test: Called with each key; a truthy return value is a hit

    Returns:
        (label, test result) for the first hit, or None
    """
    for key, label in table:
        result = test(key)
        if result:
            return label, result
    return None


def _capture(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if match:
        captured = match.group(1).strip()
        return captured or None
    return None


def extract_job_role(subject: str, body: str) -> str:
    """Return the first role phrase found in the subject, then the body."""
    for text in (subject, body):
        hit = first_match(ROLE_PATTERNS, lambda pattern: _capture(pattern, text))
        if hit:
            return hit[1]
    return DEFAULT_ROLE


def determine_status(subject: str, body: str) -> HeuristicStatus:
    """Classify the application status from email wording."""
    text = f"{subject} {body}".lower()
    hit = first_match(STATUS_RULES, lambda terms: any(term in text for term in terms))
    return hit[0] if hit else HeuristicStatus.APPLIED


def _domain_label(address: str) -> str:
    if "@" not in address:
        return ""
    return address.split("@", 1)[1].split(".")[0]


def _title_case(token: str) -> str:
    words = []
    for segment in re.split(r"[._\-]", token):
        words.extend(w[:1].upper() + w[1:].lower() for w in segment.split())
    return " ".join(words)


def extract_company_name(from_header: str) -> str:
    """
    Derive a company name from the From header.

    The display name is used unless it looks like a person's name, in which
    case the first label of the sender's domain is used instead.
    """
    display_name, address = parseaddr(from_header)
    name = display_name.split("@")[0].strip().strip('"').strip()

    if not name or HUMAN_NAME_PATTERN.match(name):
        name = _domain_label(address)

    return _title_case(name) or DEFAULT_COMPANY


def parse_email_date(value: str) -> Optional[datetime]:
    """Parse an RFC 2822 Date header, returning None when it can't be parsed."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        logger.warning("Unparseable Date header: %r", value)
        return None


def build_notes(email: ParsedEmail) -> str:
    """Provenance note shown to the user on imported applications."""
    if email.snippet:
        return f"Extracted from email: {email.snippet}"
    return f"Extracted from email subject: {email.subject}"


def extract_application(email: ParsedEmail) -> ExtractedApplication:
    """
    Extract application fields from a classified job email.

    Args:
        email: Decoded email that passed classification

    Returns:
        ExtractedApplication keyed by the Gmail message id
    """
    if not email.id:
        raise ValueError("Cannot extract an application from an email without an id")

    return ExtractedApplication(
        company_name=extract_company_name(email.from_header),
        job_role=extract_job_role(email.subject, email.body),
        status=determine_status(email.subject, email.body),
        date_applied=parse_email_date(email.date),
        email_id=email.id,
        notes=build_notes(email),
    )
