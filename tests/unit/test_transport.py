"""Unit tests for the loopback transport and message file parsing."""

from datetime import datetime, timezone

import pytest

from friendlymail.exceptions import DraftNotReadyError, MessageParseError
from friendlymail.metadata import encode_tag
from friendlymail.models import Draft, EventKind, EventTag, Message
from friendlymail.transport import LoopbackTransport, message_from_text


class TestMessageFromText:
    """Test suite for message_from_text."""

    def test_parse_with_host_placeholder(self, host, sample_message_text) -> None:
        """Test that placeholders, headers and the body are parsed."""
        message = message_from_text(sample_message_text, host_address=host)

        assert message.sender == host
        assert message.recipients == [host]
        assert message.subject == "Fm"
        assert message.body.strip() == "$ help"
        assert message.created_at == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert message.event_tag is None

    def test_parse_display_name_addresses(self) -> None:
        text = (
            "From: Kath L <kath@test.com>\n"
            "To: Phil L <phil@test.com>, f@test.com\n"
            "Subject: Fm\n"
            "\n"
            "hello\n"
        )

        message = message_from_text(text)

        assert message.sender == "kath@test.com"
        assert message.recipients == ["phil@test.com", "f@test.com"]

    def test_parse_folded_event_tag(self) -> None:
        """Test that a soft-wrapped tag survives header folding."""
        tag = EventTag(kind=EventKind.INVITE, ref="addfollower:" + "f" * 90 + "@test.com")
        token = encode_tag(tag).replace("\r\n", "\r\n ")
        text = (
            "From: h@test.com\n"
            "To: h@test.com\n"
            "Subject: Re: Fm\n"
            f"X-friendlymail: {token}\n"
            "\n"
            "done\n"
        )

        message = message_from_text(text)

        assert message.tag == tag

    def test_missing_sender_raises(self) -> None:
        with pytest.raises(MessageParseError):
            message_from_text("To: h@test.com\nSubject: Fm\n\n$ help\n")

    def test_invalid_date_uses_current_time(self) -> None:
        message = message_from_text("From: h@test.com\nDate: someday\nSubject: Fm\n\nhello\n")

        assert message.created_at.tzinfo is not None


class TestLoopbackTransport:
    """Test suite for LoopbackTransport."""

    @pytest.mark.asyncio
    async def test_fetch_returns_each_message_once(self, host) -> None:
        transport = LoopbackTransport(host)
        message = Message(sender=host, recipients=[host], subject="Fm", body="$ help")
        transport.load(message)

        assert await transport.fetch() == [message]
        assert await transport.fetch() == []

    @pytest.mark.asyncio
    async def test_sent_mail_is_delivered_back(self, host) -> None:
        """Test that sent drafts are recorded and fetched as tagged messages."""
        transport = LoopbackTransport(host)
        draft = Draft(
            sender=host,
            recipients=[host],
            subject="Re: Fm",
            body="Done.",
            event_kind=EventKind.HELP,
            event_ref="abc-0",
        )

        await transport.send(draft)
        fetched = await transport.fetch()

        assert len(transport.sent_messages) == 1
        assert fetched == transport.sent_messages
        assert fetched[0].tag == EventTag(kind=EventKind.HELP, ref="abc-0")

    @pytest.mark.asyncio
    async def test_send_rejects_unready_draft(self, host) -> None:
        transport = LoopbackTransport(host)

        with pytest.raises(DraftNotReadyError):
            await transport.send(Draft(subject="Re: Fm"))

        assert transport.sent_messages == []

    def test_load_text(self, host, sample_message_text) -> None:
        transport = LoopbackTransport(host)

        message = transport.load_text(sample_message_text)

        assert message.sender == host
