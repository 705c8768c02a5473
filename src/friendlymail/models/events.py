"""Event kinds stamped on messages the daemon sends."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Kinds of messages sent by friendlymail."""

    WELCOME = "welcome"
    HELP = "help"
    NEW_POST_NOTIFICATION = "new_post_notification"
    NEW_LIKE_NOTIFICATION = "new_like_notification"
    NEW_COMMENT_NOTIFICATION = "new_comment_notification"
    NEW_FOLLOWER_NOTIFICATION = "new_follower_notification"
    NEW_FOLLOWER_REQUEST_NOTIFICATION = "new_follower_request_notification"
    NOW_FOLLOWING_NOTIFICATION = "now_following_notification"
    INVITE = "invite"
    ADDUSER_RESPONSE = "adduser_response"
    FOLLOW_RESPONSE = "follow_response"
    UNFOLLOW_RESPONSE = "unfollow_response"


class EventTag(BaseModel):
    """Structured payload carried in the event tag of a sent message.

    ``ref`` identifies the condition that triggered the reply (a message
    fingerprint, an address, a post reference) so a later replay can tell that
    the condition was already answered.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: EventKind = Field(alias="messageType", description="Kind of event")
    ref: str | None = Field(default=None, description="Identity of the triggering condition")
