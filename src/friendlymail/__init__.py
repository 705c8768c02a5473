"""friendlymail - an email-based alternative social network.

This package derives accounts, a follow graph and automatic replies by
replaying the host's accumulated message history.
"""

__version__ = "0.0.1"
__author__ = "friendlymail"

from friendlymail.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
