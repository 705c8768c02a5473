"""Custom exceptions for friendlymail."""


class FriendlymailError(Exception):
    """Base exception for all friendlymail errors."""


class MetadataDecodeError(FriendlymailError):
    """Exception raised when an event tag cannot be decoded."""


class DraftNotReadyError(FriendlymailError):
    """Exception raised when an unready draft is converted or sent."""


class TemplateNotFoundError(FriendlymailError):
    """Exception raised when a reply template cannot be loaded."""


class DaemonBusyError(FriendlymailError):
    """Exception raised when a daemon cycle is started while one is running."""


class ConfigurationError(FriendlymailError):
    """Exception raised for configuration related errors."""


class MessageParseError(FriendlymailError):
    """Exception raised when a message text file cannot be parsed."""
