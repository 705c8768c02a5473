"""Unit tests for data models."""

from datetime import datetime, timezone

import pytest

from friendlymail.exceptions import DraftNotReadyError
from friendlymail.metadata import decode, read_tag
from friendlymail.models import (
    Account,
    Draft,
    EventKind,
    FollowGraph,
    Message,
    default_display_name,
)


class TestMessage:
    """Test suite for Message model."""

    def test_message_creation(self) -> None:
        """Test creating a message with all fields."""
        message = Message(
            sender="phil@test.com",
            recipients=["phil@test.com"],
            subject="Fm",
            body="$ help",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

        assert message.sender == "phil@test.com"
        assert message.tag is None
        assert message.is_from("PHIL@test.com ")

    def test_message_is_immutable(self) -> None:
        """Test that messages cannot be modified once created."""
        message = Message(sender="phil@test.com", body="hello")

        with pytest.raises(Exception):
            message.body = "changed"  # type: ignore[misc]

    def test_fingerprint_is_stable_and_content_based(self) -> None:
        """Test that equal messages share a fingerprint and distinct ones do not."""
        when = datetime(2025, 1, 1, tzinfo=timezone.utc)
        first = Message(sender="phil@test.com", subject="Fm", body="hello", created_at=when)
        same = Message(sender="Phil@Test.com", subject="Fm", body="hello", created_at=when)
        other = Message(sender="phil@test.com", subject="Fm", body="hello!", created_at=when)

        assert first.fingerprint() == same.fingerprint()
        assert first.fingerprint() != other.fingerprint()
        assert len(first.fingerprint()) == 16

    def test_fingerprint_ignores_timestamp(self) -> None:
        """Test that re-reading a message with a new timestamp keeps its fingerprint."""
        first = Message(sender="phil@test.com", subject="Fm", body="$ help")
        later = Message(
            sender="phil@test.com",
            subject="Fm",
            body="$ help",
            created_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )

        assert first.fingerprint() == later.fingerprint()

    def test_unrecognized_tag_is_ignored(self) -> None:
        """Test that a garbage tag does not raise and is treated as absent."""
        message = Message(sender="phil@test.com", event_tag="garbage")

        assert message.tag is None


class TestDraft:
    """Test suite for Draft model."""

    def test_empty_draft_is_not_ready(self) -> None:
        assert Draft().is_ready_to_send() is False

    @pytest.mark.parametrize("missing", ["sender", "recipients", "subject", "body"])
    def test_draft_missing_field_is_not_ready(self, missing: str) -> None:
        """Test that every required field is needed to send."""
        fields = {
            "sender": "h@test.com",
            "recipients": ["h@test.com"],
            "subject": "Re: Fm",
            "body": "Done.",
        }
        fields[missing] = [] if missing == "recipients" else ""
        if missing == "sender":
            fields["sender"] = None

        assert Draft(**fields).is_ready_to_send() is False

    def test_complete_draft_is_ready(self) -> None:
        draft = Draft()
        draft.sender = "h@test.com"
        draft.add_recipient("h@test.com")
        draft.subject = "Re: Fm"
        draft.body = "Done."

        assert draft.is_ready_to_send() is True

    def test_assignment_refreshes_updated_at(self) -> None:
        """Test that every field assignment refreshes the update timestamp."""
        draft = Draft()
        past = datetime(2000, 1, 1, tzinfo=timezone.utc)
        draft.updated_at = past

        draft.subject = "Re: Fm"

        assert draft.updated_at > past
        assert draft.created_at > past

    def test_add_recipient_skips_duplicates(self) -> None:
        draft = Draft(recipients=["f@test.com"])

        draft.add_recipient("F@test.com")

        assert draft.recipients == ["f@test.com"]

    def test_to_message_requires_ready_draft(self) -> None:
        with pytest.raises(DraftNotReadyError):
            Draft(subject="Re: Fm").to_message()

    def test_to_message_stamps_event_tag(self) -> None:
        """Test that the sent message carries the draft's kind and reference."""
        draft = Draft(
            sender="h@test.com",
            recipients=["h@test.com"],
            subject="Re: Fm",
            body="Done.",
            event_kind=EventKind.ADDUSER_RESPONSE,
            event_ref="h@test.com",
        )

        message = draft.to_message()

        assert decode(message.event_tag) == EventKind.ADDUSER_RESPONSE
        tag = read_tag(message.event_tag)
        assert tag is not None
        assert tag.ref == "h@test.com"
        assert message.tag == tag


class TestDisplayName:
    """Test suite for default display name derivation."""

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("phil@test.com", "Phil L"),
            ("kath@test.com", "Kath L"),
            ("PHIL@test.com", "Phil L"),
            ("x@zz.com", "X Z"),
            ("ann@a.org", "Ann A"),
        ],
    )
    def test_default_display_name(self, address: str, expected: str) -> None:
        assert default_display_name(address) == expected

    def test_address_without_domain(self) -> None:
        assert default_display_name("phil") == "Phil"


class TestFollowGraph:
    """Test suite for the follow relation."""

    def test_follow_is_symmetric(self) -> None:
        """Test that following and followers mirror each other."""
        graph = FollowGraph()

        assert graph.follow("f@test.com", "h@test.com") is True

        assert graph.followers_of("h@test.com") == ["f@test.com"]
        assert graph.following_of("f@test.com") == ["h@test.com"]

    def test_self_follow_is_rejected(self) -> None:
        graph = FollowGraph()

        assert graph.follow("h@test.com", "H@test.com") is False
        assert graph.followers_of("h@test.com") == []

    def test_follow_is_idempotent(self) -> None:
        graph = FollowGraph()
        graph.follow("f@test.com", "h@test.com")
        graph.follow("F@test.com", "h@test.com")

        assert graph.followers_of("h@test.com") == ["f@test.com"]

    def test_unfollow_removes_both_directions(self) -> None:
        graph = FollowGraph()
        graph.follow("f@test.com", "h@test.com")

        graph.unfollow("f@test.com", "h@test.com")

        assert graph.followers_of("h@test.com") == []
        assert graph.following_of("f@test.com") == []

    def test_snapshot_is_read_only(self) -> None:
        """Test that the snapshot reflects the graph and cannot be mutated."""
        graph = FollowGraph()
        graph.follow("f@test.com", "h@test.com")
        account = Account(display_name="H L", address="h@test.com")

        state = graph.snapshot((account,))

        assert state.get_account("H@test.com") == account
        assert state.followers_of("h@test.com") == frozenset({"f@test.com"})
        assert state.is_following("f@test.com", "h@test.com")
        with pytest.raises(TypeError):
            state.followers["x@test.com"] = frozenset()  # type: ignore[index]

        graph.follow("g@test.com", "h@test.com")
        assert state.followers_of("h@test.com") == frozenset({"f@test.com"})
