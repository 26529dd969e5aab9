"""Gmail integration for application import."""
from .auth import GmailAuth
from .classifier import is_job_application_email
from .client import GmailClient, Mailbox
from .decoder import ParsedEmail, decode_message
from .extractor import ExtractedApplication, HeuristicStatus, extract_application
from .query import DEFAULT_KEYWORDS, JobKeywords, build_search_query

__all__ = [
    "GmailAuth",
    "GmailClient",
    "Mailbox",
    "ParsedEmail",
    "decode_message",
    "is_job_application_email",
    "ExtractedApplication",
    "HeuristicStatus",
    "extract_application",
    "JobKeywords",
    "DEFAULT_KEYWORDS",
    "build_search_query",
]
