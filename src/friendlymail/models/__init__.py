"""Data models for friendlymail.

This module contains Pydantic models for messages, drafts, event tags and the
social state derived from replaying the message log.
"""

from friendlymail.models.events import EventKind, EventTag
from friendlymail.models.message import Draft, Message, normalize_address
from friendlymail.models.social import Account, FollowGraph, SocialState, default_display_name

__all__ = [
    "Account",
    "Draft",
    "EventKind",
    "EventTag",
    "FollowGraph",
    "Message",
    "SocialState",
    "default_display_name",
    "normalize_address",
]
