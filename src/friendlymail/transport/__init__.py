"""Transport collaborators used by tests and the command-line simulator."""

from .loopback import LoopbackTransport
from .parsing import message_from_text

__all__ = ["LoopbackTransport", "message_from_text"]
