"""Custom exception hierarchy for the player client.

Command failures are raised to the immediate caller only. Collection
failures are stored on the owning cache and, for mutations, re-raised as
StoreError so the caller can show transient feedback.
"""

from typing import Optional


class PlayerClientError(Exception):
    """Base exception for all player client errors."""

    pass


class CommandError(PlayerClientError):
    """A playback command was rejected by the engine boundary."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class EngineUnavailable(CommandError):
    """The playback engine could not be reached."""

    pass


class InvalidPath(CommandError):
    """The engine refused the requested media path."""

    pass


class StoreError(PlayerClientError):
    """Errors related to data store operations."""

    pass


class EventPayloadError(PlayerClientError):
    """An event payload from the boundary could not be parsed."""

    pass


class ConfigurationError(PlayerClientError):
    """Errors related to configuration."""

    pass
