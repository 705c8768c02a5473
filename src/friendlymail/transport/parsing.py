"""Helpers for parsing plain-text message files into internal models."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.parser import Parser
from email.utils import getaddresses, parsedate_to_datetime

from friendlymail.exceptions import MessageParseError
from friendlymail.models import Message

HOST_PLACEHOLDER = "<host_address>"
TAG_HEADER = "X-friendlymail"

_FOLD_RE = re.compile(r"(\r?\n)[ \t]")


def _parse_address_list(value: str | None) -> list[str]:
    if not value:
        return []
    # getaddresses returns list[(name, addr)]
    return [addr for _, addr in getaddresses([value]) if addr]


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return None


def message_from_text(text: str, host_address: str | None = None) -> Message:
    """Parse a message file with ``From``/``To``/``Subject`` headers and a body.

    Args:
        text: Raw message text.
        host_address: Substituted for ``<host_address>`` placeholders.

    Returns:
        Message: Parsed message.

    Raises:
        MessageParseError: If the message has no sender or is multipart.
    """
    if host_address:
        text = text.replace(HOST_PLACEHOLDER, host_address)

    parsed = Parser().parsestr(text)
    if parsed.is_multipart():
        raise MessageParseError("Multipart messages are not supported")

    senders = _parse_address_list(parsed.get("From"))
    if not senders:
        raise MessageParseError("Message has no From address")

    tag = parsed.get(TAG_HEADER)
    if tag is not None:
        # Undo header folding so soft line breaks are adjacent again.
        tag = _FOLD_RE.sub(r"\1", str(tag)).strip()

    payload = parsed.get_payload()
    return Message(
        sender=senders[0],
        recipients=_parse_address_list(parsed.get("To")),
        subject=str(parsed.get("Subject") or "").strip(),
        body=payload if isinstance(payload, str) else "",
        created_at=_parse_date(parsed.get("Date")) or datetime.now(timezone.utc),
        event_tag=tag or None,
    )
