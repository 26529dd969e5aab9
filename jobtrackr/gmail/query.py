"""Gmail search query for candidate job application emails."""
from dataclasses import dataclass


@dataclass(frozen=True)
class JobKeywords:
    """Keyword and sender-domain configuration shared by search and classification."""

    subject: tuple[str, ...]
    body: tuple[str, ...]
    domains: tuple[str, ...]


DEFAULT_KEYWORDS = JobKeywords(
    subject=(
        "application received",
        "application confirmation",
        "thank you for applying",
        "application status",
        "interview invitation",
        "job offer",
        "offer letter",
        "position",
        "recruitment",
        "hiring process",
        "application submitted",
        "we received your application",
    ),
    body=(
        "thank you for your interest",
        "we have received your application",
        "we are reviewing your application",
        "position you applied for",
        "job opportunity",
        "interview process",
        "next steps",
    ),
    domains=(
        "linkedin.com",
        "indeed.com",
        "monster.com",
        "glassdoor.com",
        "ziprecruiter.com",
        "lever.co",
        "greenhouse.io",
        "workday.com",
        "taleo.net",
        "jobvite.com",
        "smartrecruiters.com",
        "myworkdayjobs.com",
        "hire.lever.co",
    ),
)


def _group(clauses: list[str]) -> str:
    return "{" + " OR ".join(clauses) + "}"


def build_search_query(keywords: JobKeywords = DEFAULT_KEYWORDS) -> str:
    """
    Build the Gmail search expression for candidate emails.

    Subject, body and sender-domain clauses are each OR'd inside a group and
    the groups are OR'd together, so any single match makes a message a
    candidate. The classifier narrows the set afterwards.

    Args:
        keywords: Keyword configuration

    Returns:
        Gmail search query string
    """
    groups = []

    if keywords.subject:
        groups.append(_group([f"subject:({kw})" for kw in keywords.subject]))
    if keywords.body:
        groups.append(_group([f'"{kw}"' for kw in keywords.body]))
    if keywords.domains:
        groups.append(_group([f"from:*@{domain}" for domain in keywords.domains]))

    return " OR ".join(groups)
