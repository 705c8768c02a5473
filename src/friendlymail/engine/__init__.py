"""Replay engine: classification, reply rendering, outbox and processor."""

from .outbox import Outbox
from .processor import Processor, derive_state

__all__ = ["Outbox", "Processor", "derive_state"]
