"""Data models for the upload_tracker library."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

# Progress given to a record whose upload was acknowledged but has not yet
# reported real progress. Distinguishes "started" from "never started".
INITIATED_PROGRESS = 0.01

# Highest progress a non-terminal event may set; 100 is reserved for completion.
MAX_INFLIGHT_PROGRESS = 99.99

COMPLETE_PROGRESS = 100.0


class RecordState(str, Enum):
    """Upload state of a file record."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETE = "complete"


def clamp_progress(progress: float) -> float:
    """Clamp a non-terminal progress value into the in-flight range."""
    return min(max(progress, INITIATED_PROGRESS), MAX_INFLIGHT_PROGRESS)


@dataclass(frozen=True)
class FileRecord:
    """One remote file and the state of its upload.

    Records are immutable; every state change produces a new record that
    replaces the old one in the registry.
    """

    name: str
    path: str
    size: int
    upload_id: str = ""
    upload_progress: float = 0.0
    destination_path: str = ""
    token: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.upload_progress <= COMPLETE_PROGRESS:
            raise ValueError(f"upload_progress out of range: {self.upload_progress}")
        if self.destination_path and not self.upload_id:
            raise ValueError("destination_path requires an upload_id")
        if self.destination_path and self.upload_progress < COMPLETE_PROGRESS:
            raise ValueError("a completed record cannot carry in-flight progress")

    @property
    def state(self) -> RecordState:
        """Current upload state, derived from the record's fields."""
        if self.destination_path:
            return RecordState.COMPLETE
        if 0 < self.upload_progress < COMPLETE_PROGRESS:
            return RecordState.IN_FLIGHT
        return RecordState.IDLE

    @property
    def is_idle(self) -> bool:
        return self.state is RecordState.IDLE

    @property
    def is_complete(self) -> bool:
        return self.state is RecordState.COMPLETE

    def initiated(self, token: str | None = None) -> FileRecord:
        """Return this record as acknowledged and awaiting its first progress event."""
        return replace(self, upload_progress=INITIATED_PROGRESS, token=token or self.token)

    def with_progress(self, progress: float, token: str | None = None) -> FileRecord:
        """Return this record in flight at the given progress."""
        return replace(
            self,
            upload_id="",
            destination_path="",
            upload_progress=clamp_progress(progress),
            token=token or self.token,
        )

    def completed(
        self,
        upload_id: str,
        destination_path: str,
        token: str | None = None,
    ) -> FileRecord:
        """Return this record as uploaded. The source path is kept."""
        return replace(
            self,
            upload_id=upload_id,
            destination_path=destination_path,
            upload_progress=COMPLETE_PROGRESS,
            token=token or self.token,
        )

    def reset(self) -> FileRecord:
        """Return this record back in its pre-upload state."""
        return replace(
            self,
            upload_id="",
            upload_progress=0.0,
            destination_path="",
            token=None,
        )


class InitiateStatus(str, Enum):
    """Result kinds of an upload initiation."""

    ACCEPTED = "accepted"
    OPENED_EXTERNAL = "opened_external"
    INVALID_TARGET = "invalid_target"
    REQUEST_FAILED = "request_failed"


class DeleteStatus(str, Enum):
    """Result kinds of an upload deletion."""

    DELETED = "deleted"
    INVALID_TARGET = "invalid_target"
    NOT_ECHOED = "not_echoed"
    REQUEST_FAILED = "request_failed"


@dataclass(frozen=True)
class InitiateOutcome:
    """Result of an upload initiation."""

    status: InitiateStatus
    path: str
    index: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status in (InitiateStatus.ACCEPTED, InitiateStatus.OPENED_EXTERNAL)


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of an upload deletion."""

    status: DeleteStatus
    upload_id: str
    index: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status is DeleteStatus.DELETED
