"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

HOST_EMAIL = "h@test.com"


@pytest.fixture
def host() -> str:
    """Provide the host email address used across tests."""
    return HOST_EMAIL


@pytest.fixture
def settings():
    """Provide settings pointing at the packaged welcome template."""
    from friendlymail.config import Settings

    return Settings(host_address=HOST_EMAIL, log_level="DEBUG", debug=True)


@pytest.fixture
def settings_without_template(tmp_path):
    """Provide settings whose welcome template does not exist."""
    from friendlymail.config import Settings

    return Settings(
        host_address=HOST_EMAIL,
        welcome_template_path=tmp_path / "missing_template.txt",
    )


@pytest.fixture
def make_message():
    """Build messages with strictly increasing timestamps."""
    from friendlymail.models import Message

    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(sender: str, body: str, subject: str = "Fm", recipients: list[str] | None = None) -> Message:
        counter["n"] += 1
        return Message(
            sender=sender,
            recipients=recipients or [HOST_EMAIL],
            subject=subject,
            body=body,
            created_at=start + timedelta(minutes=counter["n"]),
        )

    return _make


@pytest.fixture
def sample_message_text() -> str:
    """Provide a message file as the command-line simulator reads it."""
    return (
        "From: <host_address>\n"
        "To: <host_address>\n"
        "Subject: Fm\n"
        "Date: Wed, 01 Jan 2025 10:00:00 +0000\n"
        "\n"
        "$ help\n"
    )
