"""Received/sent messages and in-progress outbound drafts."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from friendlymail.exceptions import DraftNotReadyError
from friendlymail.models.events import EventKind, EventTag


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_address(address: str) -> str:
    """Return the comparison form of an email address."""
    return address.strip().lower()


class Message(BaseModel):
    """An immutable message in the log, either received or previously sent."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field(description="Sender email address")
    recipients: list[str] = Field(default_factory=list, description="Recipient email addresses")
    subject: str = Field(default="", description="Subject line")
    body: str = Field(default="", description="Plain text body")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")
    event_tag: str | None = Field(
        default=None,
        description="Encoded event tag, present only on messages friendlymail sent",
    )

    @property
    def tag(self) -> EventTag | None:
        """The decoded event tag, or None when absent or unrecognized."""
        if self.event_tag is None:
            return None

        from friendlymail.metadata import read_tag

        return read_tag(self.event_tag)

    def is_from(self, address: str) -> bool:
        return normalize_address(self.sender) == normalize_address(address)

    def fingerprint(self) -> str:
        """Content digest of the message.

        The timestamp is left out; identical messages are told apart by their
        position in the log.
        """
        digest = hashlib.sha256()
        for part in (
            normalize_address(self.sender),
            ",".join(normalize_address(r) for r in self.recipients),
            self.subject,
            self.body,
        ):
            digest.update(part.encode("utf-8", "surrogatepass"))
            digest.update(b"\x00")
        return digest.hexdigest()[:16]


class Draft(BaseModel):
    """A mutable outbound message that has not been sent yet.

    Every field assignment refreshes ``updated_at``.
    """

    sender: str | None = Field(default=None, description="Sender, unset until assigned")
    recipients: list[str] = Field(default_factory=list, description="Recipient addresses")
    subject: str = Field(default="", description="Subject line")
    body: str = Field(default="", description="Plain text body")
    event_kind: EventKind | None = Field(default=None, description="Kind of event this replies to")
    event_ref: str | None = Field(default=None, description="Identity of the triggering condition")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        if name != "updated_at":
            super().__setattr__("updated_at", _utcnow())

    @property
    def event_tag(self) -> EventTag | None:
        if self.event_kind is None:
            return None
        return EventTag(kind=self.event_kind, ref=self.event_ref)

    def add_recipient(self, address: str) -> None:
        """Add a recipient unless it is already present."""
        wanted = normalize_address(address)
        if any(normalize_address(r) == wanted for r in self.recipients):
            return
        self.recipients = [*self.recipients, address]

    def is_ready_to_send(self) -> bool:
        return bool(self.sender) and len(self.recipients) > 0 and bool(self.subject) and bool(self.body)

    def to_message(self, created_at: datetime | None = None) -> Message:
        """Convert the draft to a sent message stamped with its event tag.

        Raises:
            DraftNotReadyError: If sender, recipients, subject or body is missing.
        """
        if not self.is_ready_to_send():
            raise DraftNotReadyError("Draft is not ready to send. Missing required fields.")

        from friendlymail.metadata import encode_tag

        tag = self.event_tag
        return Message(
            sender=self.sender or "",
            recipients=list(self.recipients),
            subject=self.subject,
            body=self.body,
            created_at=created_at or _utcnow(),
            event_tag=encode_tag(tag) if tag is not None else None,
        )
