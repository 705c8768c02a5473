"""Drafts produced by one replay pass."""

from __future__ import annotations

from collections.abc import Iterator

from friendlymail.models import Draft, EventKind


class Outbox:
    """Ordered drafts awaiting sending.

    Drafts are removed by identity, so two drafts with equal content are
    still distinct entries.
    """

    def __init__(self) -> None:
        self._drafts: list[Draft] = []

    @property
    def drafts(self) -> list[Draft]:
        return list(self._drafts)

    def add(self, draft: Draft) -> None:
        self._drafts.append(draft)

    def remove(self, draft: Draft) -> None:
        self._drafts = [d for d in self._drafts if d is not draft]

    def has_event(self, kind: EventKind, ref: str | None = None) -> bool:
        """Whether a queued draft answers ``kind`` (and ``ref``, if given)."""
        for draft in self._drafts:
            if draft.event_kind != kind:
                continue
            if ref is not None and draft.event_ref != ref:
                continue
            return True
        return False

    def __iter__(self) -> Iterator[Draft]:
        return iter(list(self._drafts))

    def __len__(self) -> int:
        return len(self._drafts)
