"""Subjects and bodies of every message friendlymail sends."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from urllib.parse import quote

from friendlymail import __version__
from friendlymail.engine.commands import (
    COMMENT_EMOJI,
    COMMENT_SUBJECT_PREFIX,
    LIKE_EMOJI,
    LIKE_SUBJECT_PREFIX,
)
from friendlymail.exceptions import TemplateNotFoundError

SIGNATURE = (
    "friendlymail, an open-source, email-based, alternative social network"
)

WELCOME_SUBJECT = "Welcome to friendlymail!"
COMMAND_REPLY_SUBJECT = "Re: Fm"

HELP_COMMANDS = (
    "$ help",
    "$ adduser",
    "$ invite <email>",
    "$ invite --addfollower <email>",
    "$ follow <email>",
    "$ follow --show",
    "$ unfollow <email>",
)


def _mailto(address: str, subject: str, body: str) -> str:
    return f"mailto:{address}?subject={quote(subject)}&body={quote(body)}"


def _signed(*parts: str) -> str:
    return "\n\n".join([*parts, SIGNATURE])


def _quoted(text: str) -> str:
    return "\n".join(f"> {line}" for line in text.splitlines() or [""])


def load_welcome_body(template_path: Path, host_address: str) -> str:
    """Render the welcome template.

    Raises:
        TemplateNotFoundError: If the template file cannot be read.
    """
    try:
        template = Path(template_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateNotFoundError(f"Welcome template not readable: {template_path}") from exc

    return (
        template.replace("{{ version }}", __version__)
        .replace("{{ host }}", host_address)
        .replace("{{ signature }}", SIGNATURE)
    )


def help_body(host_address: str) -> str:
    commands = "\n".join(
        f"{line}: {_mailto(host_address, 'Fm', line)}" for line in HELP_COMMANDS
    )
    return _signed(
        "$ help\n"
        f"friendlymail: friendlymail, version {__version__}\n"
        "These shell commands are defined internally.  Type `help' to see this list.\n"
        "Reply to this message, or follow a link below, to run a command.",
        commands,
    )


def adduser_done_body(display_name: str, address: str) -> str:
    return _signed(f"$ adduser\nDone. Created account {display_name} for {address}.")


def permission_denied_body(command: str) -> str:
    return _signed(f"$ {command}\nfriendlymail: {command}: Permission denied")


def account_required_body(command: str) -> str:
    return _signed(f"$ {command}\nFatal: a friendlymail user account is required for this command.")


def addfollower_body(target: str) -> str:
    return _signed(f"$ invite --addfollower {target}\n{target} is now following you.")


def invitation_subject(host_name: str) -> str:
    return f"friendlymail: {host_name} invited you to friendlymail"


def invitation_body(host_name: str, host_address: str) -> str:
    follow_link = _mailto(host_address, "Fm", "$ follow")
    return _signed(
        f"{host_name} ({host_address}) has invited you to follow them on friendlymail.",
        f"Reply to {host_address} to ask to follow: {follow_link}",
    )


def follow_body(target: str) -> str:
    return _signed(f"$ follow {target}\nYou are now following {target}.")


def unfollow_body(target: str) -> str:
    return _signed(f"$ unfollow {target}\nYou are no longer following {target}.")


def follow_show_body(following: Iterable[str], followers: Iterable[str]) -> str:
    following = list(following)
    followers = list(followers)
    return _signed(
        "$ follow --show",
        "Following:\n" + ("\n".join(following) if following else "(none)"),
        "Followers:\n" + ("\n".join(followers) if followers else "(none)"),
    )


def post_notification_subject(author_name: str) -> str:
    return f"friendlymail: New post from {author_name}"


def post_notification_body(author_name: str, host_address: str, post: str, reference: str) -> str:
    like_link = _mailto(host_address, f"{LIKE_SUBJECT_PREFIX}{reference}", LIKE_EMOJI)
    comment_link = _mailto(host_address, f"{COMMENT_SUBJECT_PREFIX}{reference}", "")
    return _signed(
        f"{author_name} posted:",
        post,
        f"Like {LIKE_EMOJI}: {like_link}\nComment {COMMENT_EMOJI}: {comment_link}",
    )


def like_notification_subject(liker_name: str) -> str:
    return f"friendlymail: {liker_name} liked your post"


def like_notification_body(liker_name: str, post: str) -> str:
    return _signed(f"{liker_name} liked your post:", _quoted(post), LIKE_EMOJI)


def comment_notification_subject(commenter_name: str) -> str:
    return f"friendlymail: New comment from {commenter_name} on your post"


def comment_notification_body(commenter_name: str, post: str, comment: str) -> str:
    return _signed(
        f"{commenter_name} commented on your post:",
        _quoted(post),
        f"{commenter_name}: {comment}",
    )
