"""Exceptions raised by the Gmail import pipeline.

Only ``AuthenticationRequired``, ``MailboxSearchError`` and ``StoreQueryError``
reach the caller of a sync. The others are raised at per-message or per-record boundaries and are
caught and logged by the orchestrator.
"""


class JobTrackrError(Exception):
    """Base exception for JobTrackr errors."""

    pass


class AuthenticationRequired(JobTrackrError):
    """Raised when no valid Gmail credential is available."""

    def __init__(self, reason: str = "Gmail authentication required"):
        self.reason = reason
        super().__init__(reason)


class MailboxSearchError(JobTrackrError):
    """Raised when the candidate message search itself fails."""

    pass


class MailboxFetchError(JobTrackrError):
    """Raised when a single message cannot be fetched."""

    def __init__(self, message_id: str, reason: str):
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to fetch message {message_id}: {reason}")


class DecodeError(JobTrackrError):
    """Raised when a message body part cannot be decoded."""

    pass


class StoreQueryError(JobTrackrError):
    """Raised when existing records cannot be loaded for deduplication."""

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Could not load existing applications for {user_id}: {reason}")


class StoreInsertError(JobTrackrError):
    """Raised when a single application record cannot be persisted."""

    def __init__(self, email_id: str, reason: str):
        self.email_id = email_id
        self.reason = reason
        super().__init__(f"Failed to store application from email {email_id}: {reason}")
