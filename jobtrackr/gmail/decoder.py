"""Decode raw Gmail API messages into ParsedEmail records."""
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

from jobtrackr.exceptions import DecodeError

logger = logging.getLogger(__name__)


@dataclass
class ParsedEmail:
    """Normalized email message."""

    id: str
    thread_id: str
    subject: str
    from_header: str
    date: str
    body: str
    snippet: str = ""


def decode_body_data(data: str) -> str:
    """
    Decode a base64url Gmail body payload to text.

    Raises:
        DecodeError: If the payload is not valid base64
    """
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(str(e)) from e
    return raw.decode("utf-8", errors="replace")


def _iter_parts(payload: dict):
    """Yield leaf parts of a (possibly nested) MIME payload."""
    parts = payload.get("parts")
    if not parts:
        yield payload
        return
    for part in parts:
        yield from _iter_parts(part)


def _decode_part(part: dict) -> Optional[str]:
    data = (part.get("body") or {}).get("data")
    if not data:
        return None
    try:
        return decode_body_data(data)
    except DecodeError as e:
        logger.debug("Skipping undecodable %s part: %s", part.get("mimeType", "?"), e)
        return None


def extract_body(payload: dict) -> str:
    """Concatenate all text/plain parts, falling back to the first decodable part."""
    parts = list(_iter_parts(payload))

    texts = []
    for part in parts:
        if part.get("mimeType") == "text/plain":
            text = _decode_part(part)
            if text is not None:
                texts.append(text)

    if texts:
        return "".join(texts)

    for part in parts:
        text = _decode_part(part)
        if text is not None:
            return text

    return ""


def get_header(headers: list[dict], name: str) -> str:
    """Return the first header value matching name (case-insensitive), or ''."""
    wanted = name.lower()
    for header in headers:
        if header.get("name", "").lower() == wanted:
            return header.get("value") or ""
    return ""


def decode_message(data: dict) -> ParsedEmail:
    """
    Turn a Gmail ``format=full`` message resource into a ParsedEmail.

    Missing headers become empty strings and body parts that fail to decode
    are skipped, so this never raises for a well-formed resource.

    Args:
        data: Raw message dict from the Gmail API

    Returns:
        ParsedEmail
    """
    payload = data.get("payload") or {}
    headers = payload.get("headers") or []

    return ParsedEmail(
        id=data.get("id", ""),
        thread_id=data.get("threadId", ""),
        subject=get_header(headers, "Subject"),
        from_header=get_header(headers, "From"),
        date=get_header(headers, "Date"),
        body=extract_body(payload),
        snippet=data.get("snippet") or "",
    )
