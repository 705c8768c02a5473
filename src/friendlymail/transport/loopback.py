"""In-memory transport that delivers sent mail back to the host."""

from __future__ import annotations

import structlog

from friendlymail.exceptions import DraftNotReadyError
from friendlymail.models import Draft, Message

logger = structlog.get_logger()


class LoopbackTransport:
    """Receiver and sender over an in-memory mailbox.

    Messages passed to :meth:`load` and messages produced by :meth:`send` are
    returned by :meth:`fetch`, each exactly once, in arrival order.
    """

    def __init__(self, host_address: str) -> None:
        self.host_address = host_address
        self._inbound: list[Message] = []
        self._cursor = 0
        self._sent: list[Message] = []

    @property
    def sent_messages(self) -> list[Message]:
        return list(self._sent)

    def load(self, message: Message) -> None:
        self._inbound.append(message)

    def load_text(self, text: str) -> Message:
        from friendlymail.transport.parsing import message_from_text

        message = message_from_text(text, host_address=self.host_address)
        self.load(message)
        return message

    async def fetch(self) -> list[Message]:
        new = self._inbound[self._cursor :]
        self._cursor = len(self._inbound)
        return list(new)

    async def send(self, draft: Draft) -> None:
        if not draft.is_ready_to_send():
            raise DraftNotReadyError("Draft is not ready to send")

        message = draft.to_message()
        self._sent.append(message)
        self._inbound.append(message)
        logger.debug("loopback_message_sent", subject=message.subject, recipients=message.recipients)
