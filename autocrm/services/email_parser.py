"""Best-effort RFC 5322 / MIME parsing for inbound mail."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email import policy
from email.message import Message
from email.parser import BytesParser
from email.utils import getaddresses, parsedate_to_datetime

from autocrm.services.errors import EmailParseError
from autocrm.utils.normalization import normalize_email, normalize_subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedEmail:
    """Structured fields extracted from a raw message."""

    subject: str | None
    from_text: str | None
    from_email: str | None
    date: datetime | None
    text: str | None
    html: str | None = None
    message_id: str | None = None
    to_emails: list[str] = field(default_factory=list)

    @property
    def body(self) -> str | None:
        """Plain text when present, otherwise the HTML part."""
        return self.text or self.html


def _header(message: Message, name: str) -> str | None:
    try:
        value = message.get(name)
    except (ValueError, IndexError, TypeError, AttributeError) as exc:
        logger.info("Unreadable %s header: %s", name, exc)
        return None
    if value is None:
        return None
    return str(value).strip() or None


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _decode_part(part: Message) -> str | None:
    payload = part.get_payload(decode=True)
    if payload is None:
        return None
    if isinstance(payload, str):
        return payload
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _extract_bodies(message: Message) -> tuple[str | None, str | None]:
    body_text = None
    body_html = None

    if not message.is_multipart():
        decoded = _decode_part(message)
        if message.get_content_type() == "text/html":
            return None, decoded
        return decoded, None

    for part in message.walk():
        if part.is_multipart():
            continue
        content_disposition = str(part.get("Content-Disposition") or "").lower()
        if part.get_filename() or "attachment" in content_disposition:
            continue
        content_type = part.get_content_type()
        if content_type == "text/plain" and body_text is None:
            body_text = _decode_part(part)
        elif content_type == "text/html" and body_html is None:
            body_html = _decode_part(part)
    return body_text, body_html


def parse_email(raw: str | bytes) -> ParsedEmail:
    """Parse raw MIME text into structured fields.

    Recoverable malformations (bad dates, missing headers, unknown charsets)
    degrade to None values. Raises EmailParseError only when there is nothing
    to parse.
    """
    if isinstance(raw, str):
        raw_bytes = raw.encode("utf-8", errors="replace")
    elif isinstance(raw, (bytes, bytearray)):
        raw_bytes = bytes(raw)
    else:
        raise EmailParseError(f"Unsupported email payload type: {type(raw).__name__}")
    if not raw_bytes.strip():
        raise EmailParseError("Email payload is empty")

    message = BytesParser(policy=policy.default).parsebytes(raw_bytes)

    from_text = _header(message, "From")
    from_list = getaddresses([from_text]) if from_text else []
    from_email = normalize_email(from_list[0][1]) if from_list and from_list[0][1] else None

    to_header = _header(message, "To")
    to_emails = [
        email
        for email in (normalize_email(address) for _, address in getaddresses([to_header]))
        if email
    ] if to_header else []

    body_text, body_html = _extract_bodies(message)

    return ParsedEmail(
        subject=normalize_subject(_header(message, "Subject")),
        from_text=from_text,
        from_email=from_email,
        date=_parse_date(_header(message, "Date")),
        text=body_text,
        html=body_html,
        message_id=_header(message, "Message-ID"),
        to_emails=to_emails,
    )
