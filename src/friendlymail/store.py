"""Append-only message log owned by the daemon."""

from __future__ import annotations

from collections.abc import Iterable

from friendlymail.models import Message


class MessageStore:
    """Ordered log of every received and previously sent message.

    The log only grows; presentation order is authoritative for replay.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = list(messages)

    @property
    def all_messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def add_message(self, message: Message) -> None:
        self._messages.append(message)

    def add_messages(self, messages: Iterable[Message]) -> None:
        self._messages.extend(messages)

    def __len__(self) -> int:
        return len(self._messages)
