"""Unit tests for the command-line interface."""

import pytest

from friendlymail.cli import main
from friendlymail.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every CLI test read fresh settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def help_file(tmp_path, sample_message_text):
    path = tmp_path / "help.txt"
    path.write_text(sample_message_text, encoding="utf-8")
    return path


class TestCli:
    """Test suite for the CLI entry point."""

    def test_process_prints_drafts(self, host, help_file, capsys) -> None:
        exit_code = main(["process", "--host-email", host, str(help_file)])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "Created 2 draft message(s)" in output
        assert "Subject: Welcome to friendlymail!" in output
        assert "Subject: Re: Fm" in output

    def test_run_sends_once_across_cycles(self, host, help_file, capsys) -> None:
        """Test that a second cycle sends nothing new."""
        exit_code = main(["run", "--host-email", host, "--cycles", "2", str(help_file)])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "2 sent message(s)" in output

    def test_missing_host_address(self, monkeypatch: pytest.MonkeyPatch, help_file) -> None:
        monkeypatch.delenv("FRIENDLYMAIL_HOST_ADDRESS", raising=False)
        monkeypatch.chdir(help_file.parent)

        assert main(["process", str(help_file)]) == 2

    def test_host_address_from_environment(self, monkeypatch: pytest.MonkeyPatch, help_file, capsys) -> None:
        monkeypatch.setenv("FRIENDLYMAIL_HOST_ADDRESS", "h@test.com")

        assert main(["process", str(help_file)]) == 0
        assert "To: h@test.com" in capsys.readouterr().out

    def test_unparseable_message(self, host, tmp_path) -> None:
        path = tmp_path / "bad.txt"
        path.write_text("Subject: Fm\n\n$ help\n", encoding="utf-8")

        assert main(["process", "--host-email", host, str(path)]) == 1
