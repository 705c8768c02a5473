"""Accounts and the follow graph derived from replaying the log."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import structlog
from pydantic import BaseModel, ConfigDict, Field

from friendlymail.models.message import normalize_address

logger = structlog.get_logger()


def default_display_name(address: str) -> str:
    """Derive a display name from an address.

    The capitalized local part is followed by a letter computed from the
    domain's second-level label: the sum of its letter positions (a=1 .. z=26)
    taken modulo 26, where 0 maps to Z. ``phil@test.com`` becomes ``Phil L``.
    """
    local, _, domain = address.strip().partition("@")
    name = local[:1].upper() + local[1:].lower()

    labels = [label for label in domain.lower().split(".") if label]
    if not labels:
        return name
    label = labels[-2] if len(labels) >= 2 else labels[0]

    total = sum(ord(c) - ord("a") + 1 for c in label if "a" <= c <= "z")
    remainder = total % 26
    letter = "Z" if remainder == 0 else chr(ord("A") + remainder - 1)
    return f"{name} {letter}"


class Account(BaseModel):
    """A friendlymail account owned by an email address."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(description="Name shown in notifications")
    address: str = Field(description="Owning email address")


@dataclass(frozen=True)
class SocialState:
    """Immutable snapshot of accounts and the follow graph."""

    accounts: tuple[Account, ...] = ()
    following: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    followers: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))

    def get_account(self, address: str) -> Account | None:
        wanted = normalize_address(address)
        for account in self.accounts:
            if normalize_address(account.address) == wanted:
                return account
        return None

    def followers_of(self, address: str) -> frozenset[str]:
        return self.followers.get(normalize_address(address), frozenset())

    def following_of(self, address: str) -> frozenset[str]:
        return self.following.get(normalize_address(address), frozenset())

    def is_following(self, follower: str, followee: str) -> bool:
        return normalize_address(followee) in self.following_of(follower)


class FollowGraph:
    """Mutable follow relation built up during a single replay pass.

    Keeps ``following`` and ``followers`` symmetric: A follows B exactly when
    B has follower A.
    """

    def __init__(self) -> None:
        self._following: dict[str, set[str]] = {}
        self._followers: dict[str, set[str]] = {}

    def follow(self, follower: str, followee: str) -> bool:
        """Record that ``follower`` follows ``followee``.

        Returns:
            False when the relation is a self-follow and was rejected.
        """
        a = normalize_address(follower)
        b = normalize_address(followee)
        if a == b:
            logger.warning("self_follow_rejected", address=a)
            return False

        self._following.setdefault(a, set()).add(b)
        self._followers.setdefault(b, set()).add(a)
        return True

    def unfollow(self, follower: str, followee: str) -> None:
        a = normalize_address(follower)
        b = normalize_address(followee)
        self._following.get(a, set()).discard(b)
        self._followers.get(b, set()).discard(a)

    def followers_of(self, address: str) -> list[str]:
        """Followers of ``address`` in sorted order."""
        return sorted(self._followers.get(normalize_address(address), set()))

    def following_of(self, address: str) -> list[str]:
        return sorted(self._following.get(normalize_address(address), set()))

    def snapshot(self, accounts: tuple[Account, ...]) -> SocialState:
        return SocialState(
            accounts=accounts,
            following=MappingProxyType({k: frozenset(v) for k, v in self._following.items() if v}),
            followers=MappingProxyType({k: frozenset(v) for k, v in self._followers.items() if v}),
        )
