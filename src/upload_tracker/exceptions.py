"""Exception hierarchy for the upload_tracker library."""

from __future__ import annotations

from typing import Any


class UploadTrackerError(Exception):
    """Base exception for all upload_tracker errors."""

    pass


class InvalidTargetError(UploadTrackerError):
    """Raised when an upload or deletion targets a record in the wrong state."""

    pass


class UnresolvedEventError(UploadTrackerError):
    """Raised when a channel event matches no record in the registry.

    The event attribute holds the parsed event that could not be placed.
    """

    def __init__(self, message: str, event: Any = None) -> None:
        super().__init__(message)
        self.event = event


class MalformedEventError(UploadTrackerError):
    """Raised when a channel frame is not a valid upload-state event."""

    pass


class RequestFailedError(UploadTrackerError):
    """Raised when a request to the upload server fails.

    status_code is None for transport failures (no response received).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChannelClosedError(UploadTrackerError):
    """Raised when the progress channel cannot be opened."""

    pass
