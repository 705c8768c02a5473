"""Classification of log messages into recognized command variants.

Every message is parsed into exactly one of the variants below before the
processor dispatches it. Pattern matching on subjects and bodies lives here
and nowhere else.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Union

from friendlymail.models import Message

COMMAND_SUBJECTS = frozenset({"Fm", "fm"})
SIGIL = "$"

LIKE_EMOJI = "❤️"
COMMENT_EMOJI = "\U0001f4ac"
LIKE_SUBJECT_PREFIX = f"Fm Like {LIKE_EMOJI}:"
COMMENT_SUBJECT_PREFIX = f"Fm Comment {COMMENT_EMOJI}:"

_LIKE_SUBJECT_RE = re.compile(r"^fm\s+like\b[^:]*:\s*(?P<ref>\S+)\s*$", re.IGNORECASE)
_COMMENT_SUBJECT_RE = re.compile(r"^fm\s+comment\b[^:]*:\s*(?P<ref>\S+)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class HelpCommand:
    pass


@dataclass(frozen=True)
class AddUserCommand:
    username: str | None = None


@dataclass(frozen=True)
class InviteCommand:
    target: str | None = None
    add_follower: bool = False


@dataclass(frozen=True)
class FollowCommand:
    target: str | None = None
    show: bool = False


@dataclass(frozen=True)
class UnfollowCommand:
    target: str | None = None


@dataclass(frozen=True)
class LikeReaction:
    reference: str


@dataclass(frozen=True)
class CommentReaction:
    reference: str
    text: str


@dataclass(frozen=True)
class CreatePost:
    body: str


@dataclass(frozen=True)
class Unrecognized:
    reason: str = ""


Command = Union[
    HelpCommand,
    AddUserCommand,
    InviteCommand,
    FollowCommand,
    UnfollowCommand,
    LikeReaction,
    CommentReaction,
    CreatePost,
    Unrecognized,
]


def make_post_reference(body: str, length: int) -> str:
    """Encode the first ``length`` characters of a post body as base64."""
    prefix = body.strip()[:length]
    return base64.b64encode(prefix.encode("utf-8")).decode("ascii")


def read_post_reference(reference: str) -> str | None:
    """Decode a post reference, or None if it is not valid base64 text."""
    try:
        return base64.b64decode(reference, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def _non_blank_lines(body: str) -> list[str]:
    return [line.strip() for line in body.splitlines() if line.strip()]


def _first_argument(args: list[str]) -> str | None:
    for arg in args:
        if not arg.startswith("--"):
            return arg
    return None


def _parse_command(lines: list[str]) -> Command:
    command_line = lines[0][len(SIGIL) :].strip()
    tokens = command_line.split()
    if not tokens:
        return Unrecognized("empty command")

    name = tokens[0].lower()
    args = tokens[1:]

    if name == "help":
        return HelpCommand()

    if name == "adduser":
        username = " ".join(args).strip()
        if not username:
            # First following line that is neither blank nor another command.
            username = next((line for line in lines[1:] if not line.startswith(SIGIL)), "")
        return AddUserCommand(username=username or None)

    if name == "invite":
        return InviteCommand(target=_first_argument(args), add_follower="--addfollower" in args)

    if name == "follow":
        return FollowCommand(target=_first_argument(args), show="--show" in args)

    if name == "unfollow":
        return UnfollowCommand(target=_first_argument(args))

    return Unrecognized(f"unknown command {name!r}")


def classify(message: Message, host_address: str) -> Command:
    """Parse a message into a command variant.

    Args:
        message: An untagged message from the log.
        host_address: Address of the host user; only the host can post.

    Returns:
        The recognized variant, or ``Unrecognized``.
    """
    subject = message.subject.strip()

    like = _LIKE_SUBJECT_RE.match(subject)
    if like:
        return LikeReaction(reference=like.group("ref"))

    comment = _COMMENT_SUBJECT_RE.match(subject)
    if comment:
        return CommentReaction(reference=comment.group("ref"), text=message.body.strip())

    if subject not in COMMAND_SUBJECTS:
        return Unrecognized("not a command channel subject")

    lines = _non_blank_lines(message.body)
    if not lines:
        return Unrecognized("empty body")

    if lines[0].startswith(SIGIL):
        return _parse_command(lines)

    if message.is_from(host_address):
        return CreatePost(body=message.body.strip())

    return Unrecognized("post from a non-host sender")
