"""Replay engine.

The processor is constructed from the host address and the whole message log.
Construction replays every message once, in log order, and leaves behind

* the drafts that answer events not yet answered in the log (the outbox), and
* a snapshot of the derived accounts and follow graph.

Nothing is carried over between instances: whether an event was already
answered is decided by scanning the event tags of messages in the log, so
rebuilding the processor after every cycle is safe.
"""

from __future__ import annotations

import hashlib
from collections import Counter
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from friendlymail.config import Settings
from friendlymail.engine import replies
from friendlymail.engine.commands import (
    AddUserCommand,
    CommentReaction,
    CreatePost,
    FollowCommand,
    HelpCommand,
    InviteCommand,
    LikeReaction,
    UnfollowCommand,
    classify,
    make_post_reference,
    read_post_reference,
)
from friendlymail.engine.outbox import Outbox
from friendlymail.exceptions import TemplateNotFoundError
from friendlymail.models import (
    Account,
    Draft,
    EventKind,
    EventTag,
    FollowGraph,
    Message,
    SocialState,
    default_display_name,
    normalize_address,
)

logger = structlog.get_logger()


def _command_line(message: Message) -> str:
    for line in message.body.splitlines():
        if line.strip():
            return line.strip().lstrip("$").strip()
    return ""


def _post_key(post: str) -> str:
    return hashlib.sha256(post.encode("utf-8")).hexdigest()[:16]


class Processor:
    """Replays a message log into drafts and derived social state."""

    def __init__(
        self,
        host_address: str,
        messages: Iterable[Message] = (),
        settings: Settings | None = None,
    ) -> None:
        """Replay ``messages`` for ``host_address``.

        Args:
            host_address: Address of the host user.
            messages: The full ordered log, received and sent messages interleaved.
            settings: Application settings. If None, uses default settings.
        """
        from friendlymail.config import get_settings

        self.settings = settings or get_settings()
        self.host_address = host_address
        self._log: tuple[Message, ...] = tuple(messages)
        self._tags: list[EventTag | None] = [message.tag for message in self._log]
        self._sent_tags: list[EventTag] = [tag for tag in self._tags if tag is not None]

        self._outbox = Outbox()
        self._accounts: dict[str, Account] = {}
        self._graph = FollowGraph()
        self._posts: list[str] = []

        self._handlers: dict[type, Callable[[Message, str, Any], None]] = {
            HelpCommand: self._handle_help,
            AddUserCommand: self._handle_adduser,
            InviteCommand: self._handle_invite,
            FollowCommand: self._handle_follow,
            UnfollowCommand: self._handle_unfollow,
            CreatePost: self._handle_post,
            LikeReaction: self._handle_like,
            CommentReaction: self._handle_comment,
        }

        self._replay()
        self._state = self._graph.snapshot(tuple(self._accounts.values()))
        logger.debug(
            "replay_completed",
            host=host_address,
            log_length=len(self._log),
            drafts=len(self._outbox),
            accounts=len(self._accounts),
        )

    @property
    def outbox(self) -> Outbox:
        return self._outbox

    @property
    def state(self) -> SocialState:
        return self._state

    @property
    def log(self) -> tuple[Message, ...]:
        return self._log

    def get_message_drafts(self) -> list[Draft]:
        return self._outbox.drafts

    def remove_draft(self, draft: Draft) -> None:
        self._outbox.remove(draft)

    # Replay

    def _replay(self) -> None:
        self._check_welcome()

        occurrences: Counter[str] = Counter()
        for tag, message in zip(self._tags, self._log):
            # Messages friendlymail sent itself are only dedup markers.
            if tag is not None:
                continue

            fingerprint = message.fingerprint()
            trigger = f"{fingerprint}-{occurrences[fingerprint]}"
            occurrences[fingerprint] += 1

            command = classify(message, self.host_address)
            handler = self._handlers.get(type(command))
            if handler is None:
                continue
            handler(message, trigger, command)

    def _check_welcome(self) -> None:
        if self._already_answered(EventKind.WELCOME):
            return

        try:
            body = replies.load_welcome_body(self.settings.welcome_template_path, self.host_address)
        except TemplateNotFoundError as exc:
            logger.warning("welcome_template_missing", host=self.host_address, error=str(exc))
            return

        self._queue([self.host_address], replies.WELCOME_SUBJECT, body, EventKind.WELCOME)

    # Helpers

    def _is_host(self, address: str) -> bool:
        return normalize_address(address) == normalize_address(self.host_address)

    def _display_name(self, address: str) -> str:
        account = self._accounts.get(normalize_address(address))
        if account is not None:
            return account.display_name
        return default_display_name(address)

    def _already_answered(self, kind: EventKind, ref: str | None = None) -> bool:
        """Whether a reply of ``kind`` exists in the log or the outbox.

        With ``ref`` the match is restricted to that triggering identity.
        """
        for tag in self._sent_tags:
            if tag.kind != kind:
                continue
            if ref is not None and tag.ref != ref:
                continue
            return True
        return self._outbox.has_event(kind, ref=ref)

    def _queue(
        self,
        recipients: list[str],
        subject: str,
        body: str,
        kind: EventKind,
        ref: str | None = None,
    ) -> Draft:
        draft = Draft(
            sender=self.host_address,
            recipients=recipients,
            subject=subject,
            body=body,
            event_kind=kind,
            event_ref=ref,
        )
        self._outbox.add(draft)
        logger.debug("draft_queued", kind=kind.value, recipients=recipients, ref=ref)
        return draft

    def _deny(self, message: Message, trigger: str, kind: EventKind) -> None:
        logger.info("permission_denied", sender=message.sender, kind=kind.value)
        if self._already_answered(kind, ref=trigger):
            return
        self._queue(
            [message.sender],
            replies.COMMAND_REPLY_SUBJECT,
            replies.permission_denied_body(_command_line(message)),
            kind,
            trigger,
        )

    def _add_account(self, address: str, username: str | None) -> Account:
        key = normalize_address(address)
        existing = self._accounts.get(key)
        if existing is not None:
            return existing

        account = Account(display_name=username or default_display_name(address), address=address)
        self._accounts[key] = account
        return account

    def _may_react(self, address: str) -> bool:
        if self._is_host(address):
            return True
        return normalize_address(address) in self._graph.followers_of(self.host_address)

    def _find_post(self, reference: str) -> str | None:
        """Locate the post a reaction refers to among posts replayed so far."""
        if not self._posts:
            return None
        prefix = read_post_reference(reference)
        if prefix:
            for post in reversed(self._posts):
                if post.startswith(prefix):
                    return post
        return self._posts[-1]

    # Handlers

    def _handle_help(self, message: Message, trigger: str, command: HelpCommand) -> None:
        if self._already_answered(EventKind.HELP, ref=trigger):
            return
        self._queue(
            [message.sender],
            replies.COMMAND_REPLY_SUBJECT,
            replies.help_body(self.host_address),
            EventKind.HELP,
            trigger,
        )

    def _handle_adduser(self, message: Message, trigger: str, command: AddUserCommand) -> None:
        account = self._add_account(message.sender, command.username)

        if not self._is_host(message.sender):
            self._deny(message, trigger, EventKind.ADDUSER_RESPONSE)
            return

        ref = normalize_address(account.address)
        if self._already_answered(EventKind.ADDUSER_RESPONSE, ref=ref):
            return
        self._queue(
            [message.sender],
            replies.COMMAND_REPLY_SUBJECT,
            replies.adduser_done_body(account.display_name, account.address),
            EventKind.ADDUSER_RESPONSE,
            ref,
        )

    def _handle_invite(self, message: Message, trigger: str, command: InviteCommand) -> None:
        if not self._is_host(message.sender):
            self._deny(message, trigger, EventKind.INVITE)
            return

        if command.target is None:
            logger.warning("invite_missing_target", sender=message.sender)
            return

        target = command.target
        if command.add_follower:
            if not self._graph.follow(target, self.host_address):
                return
            ref = f"addfollower:{normalize_address(target)}"
            if self._already_answered(EventKind.INVITE, ref=ref):
                return
            self._queue(
                [self.host_address],
                replies.COMMAND_REPLY_SUBJECT,
                replies.addfollower_body(target),
                EventKind.INVITE,
                ref,
            )
            return

        if normalize_address(self.host_address) not in self._accounts:
            if self._already_answered(EventKind.INVITE, ref=trigger):
                return
            self._queue(
                [message.sender],
                replies.COMMAND_REPLY_SUBJECT,
                replies.account_required_body(_command_line(message)),
                EventKind.INVITE,
                trigger,
            )
            return

        ref = f"invite:{normalize_address(target)}"
        if self._already_answered(EventKind.INVITE, ref=ref):
            return
        host_name = self._display_name(self.host_address)
        self._queue(
            [target],
            replies.invitation_subject(host_name),
            replies.invitation_body(host_name, self.host_address),
            EventKind.INVITE,
            ref,
        )

    def _handle_follow(self, message: Message, trigger: str, command: FollowCommand) -> None:
        if not self._is_host(message.sender):
            if command.show:
                logger.info("follow_show_from_non_host", sender=message.sender)
                return
            self._deny(message, trigger, EventKind.FOLLOW_RESPONSE)
            return

        if command.show:
            if self._already_answered(EventKind.FOLLOW_RESPONSE, ref=trigger):
                return
            self._queue(
                [message.sender],
                replies.COMMAND_REPLY_SUBJECT,
                replies.follow_show_body(
                    self._graph.following_of(self.host_address),
                    self._graph.followers_of(self.host_address),
                ),
                EventKind.FOLLOW_RESPONSE,
                trigger,
            )
            return

        if command.target is None:
            logger.warning("follow_missing_target", sender=message.sender)
            return
        if not self._graph.follow(self.host_address, command.target):
            return
        if self._already_answered(EventKind.FOLLOW_RESPONSE, ref=trigger):
            return
        self._queue(
            [message.sender],
            replies.COMMAND_REPLY_SUBJECT,
            replies.follow_body(command.target),
            EventKind.FOLLOW_RESPONSE,
            trigger,
        )

    def _handle_unfollow(self, message: Message, trigger: str, command: UnfollowCommand) -> None:
        if not self._is_host(message.sender):
            self._deny(message, trigger, EventKind.UNFOLLOW_RESPONSE)
            return

        if command.target is None:
            logger.warning("unfollow_missing_target", sender=message.sender)
            return
        self._graph.unfollow(self.host_address, command.target)
        if self._already_answered(EventKind.UNFOLLOW_RESPONSE, ref=trigger):
            return
        self._queue(
            [message.sender],
            replies.COMMAND_REPLY_SUBJECT,
            replies.unfollow_body(command.target),
            EventKind.UNFOLLOW_RESPONSE,
            trigger,
        )

    def _handle_post(self, message: Message, trigger: str, command: CreatePost) -> None:
        post = command.body
        self._posts.append(post)

        reference = make_post_reference(post, self.settings.post_reference_length)
        post_key = _post_key(post)

        author = self._display_name(self.host_address)
        subject = replies.post_notification_subject(author)
        body = replies.post_notification_body(author, self.host_address, post, reference)
        # Keyed per recipient and full post body.
        for recipient in [self.host_address, *self._graph.followers_of(self.host_address)]:
            ref = f"{post_key}:{normalize_address(recipient)}"
            if self._already_answered(EventKind.NEW_POST_NOTIFICATION, ref=ref):
                continue
            self._queue([recipient], subject, body, EventKind.NEW_POST_NOTIFICATION, ref)

    def _handle_like(self, message: Message, trigger: str, command: LikeReaction) -> None:
        if not self._may_react(message.sender):
            logger.info("reaction_ignored", sender=message.sender, reaction="like")
            return

        post = self._find_post(command.reference)
        if post is None:
            logger.warning("reaction_without_post", sender=message.sender, reaction="like")
            return

        # Keyed by kind only: at most one like notification per log.
        if self._already_answered(EventKind.NEW_LIKE_NOTIFICATION):
            return
        name = self._display_name(message.sender)
        self._queue(
            [self.host_address],
            replies.like_notification_subject(name),
            replies.like_notification_body(name, post),
            EventKind.NEW_LIKE_NOTIFICATION,
            command.reference,
        )

    def _handle_comment(self, message: Message, trigger: str, command: CommentReaction) -> None:
        if not self._may_react(message.sender):
            logger.info("reaction_ignored", sender=message.sender, reaction="comment")
            return

        post = self._find_post(command.reference)
        if post is None:
            logger.warning("reaction_without_post", sender=message.sender, reaction="comment")
            return

        # Keyed by kind only: at most one comment notification per log.
        if self._already_answered(EventKind.NEW_COMMENT_NOTIFICATION):
            return
        name = self._display_name(message.sender)
        self._queue(
            [self.host_address],
            replies.comment_notification_subject(name),
            replies.comment_notification_body(name, post, command.text),
            EventKind.NEW_COMMENT_NOTIFICATION,
            command.reference,
        )


def derive_state(
    host_address: str,
    messages: Iterable[Message],
    settings: Settings | None = None,
) -> SocialState:
    """Derive accounts and the follow graph from a log."""
    return Processor(host_address, messages, settings=settings).state
