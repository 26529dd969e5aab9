"""Job application email classification."""
from jobtrackr.gmail.decoder import ParsedEmail
from jobtrackr.gmail.query import DEFAULT_KEYWORDS, JobKeywords


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(needle.lower() in text for needle in needles)


def is_job_application_email(
    email: ParsedEmail,
    keywords: JobKeywords = DEFAULT_KEYWORDS,
) -> bool:
    """
    Decide whether an email is about a job application.

    A subject keyword is enough on its own. Body keywords such as
    "thank you for your interest" only count when the sender is a known job
    board or ATS domain.
    """
    subject = email.subject.lower()
    if _contains_any(subject, keywords.subject):
        return True

    body = email.body.lower()
    sender = email.from_header.lower()
    return _contains_any(body, keywords.body) and _contains_any(sender, keywords.domains)
