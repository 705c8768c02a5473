"""Daemon run-cycle.

Each call to :meth:`Daemon.run` fetches new mail into the log, rebuilds the
processor over the whole log, sends every draft it produced, fetches again so
the sent mail lands in the log, and publishes the derived account.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

import structlog

from friendlymail.config import Settings
from friendlymail.engine import Processor
from friendlymail.exceptions import ConfigurationError, DaemonBusyError
from friendlymail.models import Account, Draft, Message, SocialState
from friendlymail.store import MessageStore

logger = structlog.get_logger()


class MessageReceiver(Protocol):
    async def fetch(self) -> list[Message]:
        """Return messages that have not been returned before."""
        ...


class MessageSender(Protocol):
    async def send(self, draft: Draft) -> None:
        """Send a draft; raises DraftNotReadyError for unready drafts."""
        ...


class SocialStateSink(Protocol):
    def get(self) -> Account | None: ...

    def set(self, account: Account) -> None: ...


class InMemorySocialState:
    """Social-state sink that keeps the latest account in memory."""

    def __init__(self, account: Account | None = None) -> None:
        self._account = account

    def get(self) -> Account | None:
        return self._account

    def set(self, account: Account) -> None:
        self._account = account


class DaemonStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class Daemon:
    """Drives the processor against a transport, one cycle per ``run``."""

    def __init__(
        self,
        host_address: str,
        receiver: MessageReceiver,
        sender: MessageSender,
        social_state: SocialStateSink,
        settings: Settings | None = None,
        store: MessageStore | None = None,
    ) -> None:
        """Initialize the daemon.

        Args:
            host_address: Address of the host user.
            receiver: Fetches newly available messages.
            sender: Sends drafts.
            social_state: Receives the derived account after every cycle.
            settings: Application settings. If None, uses default settings.
            store: Log to append to. If None, starts with an empty log.

        Raises:
            ConfigurationError: If no host address is given.
        """
        from friendlymail.config import get_settings

        if not host_address or not host_address.strip():
            raise ConfigurationError("A host address is required to run the daemon")

        self.settings = settings or get_settings()
        self.host_address = host_address
        self.receiver = receiver
        self.sender = sender
        self.social_state = social_state
        self.store = store if store is not None else MessageStore()
        self._processor: Processor | None = None
        self._status = DaemonStatus.IDLE
        logger.info("daemon_initialized", host=host_address)

    @property
    def status(self) -> DaemonStatus:
        return self._status

    @property
    def processor(self) -> Processor | None:
        """The processor built by the most recent cycle."""
        return self._processor

    @property
    def snapshot(self) -> SocialState:
        if self._processor is None:
            return SocialState()
        return self._processor.state

    async def run(self) -> None:
        """Run one cycle.

        Raises:
            DaemonBusyError: If a cycle is already in flight.
        """
        if self._status is DaemonStatus.RUNNING:
            raise DaemonBusyError("A daemon cycle is already running")

        self._status = DaemonStatus.RUNNING
        try:
            await self._run_cycle()
        finally:
            self._status = DaemonStatus.IDLE

    async def _run_cycle(self) -> None:
        received = await self.receiver.fetch()
        self.store.add_messages(received)
        logger.info("daemon_messages_fetched", count=len(received), log_length=len(self.store))

        processor = Processor(self.host_address, self.store.all_messages, settings=self.settings)
        self._processor = processor

        drafts = processor.get_message_drafts()
        for draft in drafts:
            await self.sender.send(draft)
            processor.remove_draft(draft)
            logger.info(
                "daemon_draft_sent",
                kind=draft.event_kind.value if draft.event_kind else None,
                recipients=draft.recipients,
            )

        looped = await self.receiver.fetch()
        self.store.add_messages(looped)

        accounts = processor.state.accounts
        if accounts:
            self.social_state.set(accounts[0])

        logger.info(
            "daemon_cycle_completed",
            sent=len(drafts),
            log_length=len(self.store),
            accounts=len(accounts),
        )
