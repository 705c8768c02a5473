"""Event tag codec.

An event tag is a small JSON payload (``{"messageType": ..., "ref": ...}``)
escaped into a single header-safe string:

* every UTF-8 byte outside printable ASCII, and ``=`` itself, becomes ``=XX``;
* a soft line break (``=\\r\\n``) is inserted every 75 characters.

Decoding removes soft line breaks first and then unescapes, so an escape
sequence split by a soft break still decodes.
"""

from __future__ import annotations

import re

import structlog
from pydantic import ValidationError

from friendlymail.exceptions import MetadataDecodeError
from friendlymail.models.events import EventKind, EventTag

logger = structlog.get_logger()

ESCAPE = "="
SOFT_BREAK = "=\r\n"
MAX_LINE_LENGTH = 75

_SOFT_BREAK_RE = re.compile(r"=\r?\n")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def escape(text: str) -> str:
    """Escape ``text`` with the quoted-printable convention."""
    encoded: list[str] = []
    for byte in text.encode("utf-8"):
        if byte == 32 or (33 <= byte <= 126 and byte != 61):
            encoded.append(chr(byte))
        else:
            encoded.append(f"{ESCAPE}{byte:02X}")
    flat = "".join(encoded)

    lines = [flat[i : i + MAX_LINE_LENGTH] for i in range(0, len(flat), MAX_LINE_LENGTH)]
    return SOFT_BREAK.join(lines)


def unescape(token: str) -> str:
    """Reverse :func:`escape`. Invalid escape sequences are kept verbatim."""
    cleaned = _SOFT_BREAK_RE.sub("", token)

    out = bytearray()
    i = 0
    while i < len(cleaned):
        char = cleaned[i]
        pair = cleaned[i + 1 : i + 3]
        if char == ESCAPE and len(pair) == 2 and all(c in _HEX_DIGITS for c in pair):
            out.append(int(pair, 16))
            i += 3
            continue
        out.extend(char.encode("utf-8", "surrogatepass"))
        i += 1
    return out.decode("utf-8", errors="replace")


def encode_tag(tag: EventTag) -> str:
    payload = tag.model_dump_json(by_alias=True, exclude_none=True)
    return escape(payload)


def decode_tag(token: str) -> EventTag:
    """Decode an event tag.

    Raises:
        MetadataDecodeError: If the token does not carry a recognized payload.
    """
    try:
        return EventTag.model_validate_json(unescape(token))
    except ValidationError as exc:
        raise MetadataDecodeError(f"Unrecognized event tag: {token[:40]!r}") from exc


def read_tag(token: str | None) -> EventTag | None:
    """Decode an event tag, returning None for anything unrecognized."""
    if not token:
        return None
    try:
        return decode_tag(token)
    except MetadataDecodeError:
        logger.debug("event_tag_unrecognized", token_prefix=token[:40])
        return None


def encode(kind: EventKind) -> str:
    """Encode a bare event kind."""
    return encode_tag(EventTag(kind=kind))


def decode(token: str | None) -> EventKind | None:
    """Decode the event kind of a token, or None when it is not a tag."""
    tag = read_tag(token)
    return tag.kind if tag is not None else None
