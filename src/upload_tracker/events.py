"""Wire models for server responses and push channel events.

Every payload coming from the upload server is validated here, at the
boundary, and turned into one of a closed set of event types. Anything that
does not fit raises MalformedEventError; nothing downstream sees raw JSON.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from upload_tracker.exceptions import MalformedEventError
from upload_tracker.models import COMPLETE_PROGRESS, FileRecord

logger = logging.getLogger(__name__)

_PROGRESS_ALIASES = AliasChoices("upload_progress", "progress")


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class InitiationAck(_WireModel):
    """Response of GET /upload. Any JSON object counts as an acknowledgment."""

    message: str = ""
    token: str | None = None


class DeletionAck(_WireModel):
    """Response of GET /delete. Must echo the deleted upload_id."""

    upload_id: str = ""


class ProgressUpdate(_WireModel):
    """Non-terminal upload progress pushed over the channel."""

    name: str
    size: int = Field(ge=0)
    upload_progress: float = Field(
        ge=0, le=COMPLETE_PROGRESS, allow_inf_nan=False, validation_alias=_PROGRESS_ALIASES
    )
    path: str = ""
    token: str | None = None


class CompletionEvent(_WireModel):
    """Terminal event: the upload finished and is reachable at destination_path."""

    name: str
    size: int = Field(ge=0)
    upload_id: str = Field(min_length=1)
    destination_path: str = Field(min_length=1)
    path: str = ""
    token: str | None = None


class ServerError(_WireModel):
    """Error reported by the server over the channel."""

    error: str


ChannelEvent = Union[ProgressUpdate, CompletionEvent, ServerError]


class ListingEntry(_WireModel):
    """One entry of the GET /files listing."""

    name: str
    path: str = ""
    size: int = Field(ge=0)
    upload_id: str = ""
    upload_progress: float = Field(
        default=0.0, ge=0, le=COMPLETE_PROGRESS, allow_inf_nan=False,
        validation_alias=_PROGRESS_ALIASES,
    )
    destination_path: str = ""

    def to_record(self) -> FileRecord:
        """Convert to a FileRecord in the state the entry describes."""
        record = FileRecord(name=self.name, path=self.path, size=self.size)
        if self.upload_id and (self.destination_path or self.upload_progress >= COMPLETE_PROGRESS):
            if self.destination_path:
                return record.completed(self.upload_id, self.destination_path)
            # Already-uploaded files are listed with their link in place of a path.
            if not self.path:
                raise MalformedEventError(f"Uploaded file {self.name!r} has no destination")
            return FileRecord(name=self.name, path="", size=self.size).completed(
                self.upload_id, self.path
            )
        if self.upload_progress > 0:
            return record.with_progress(self.upload_progress)
        return record


def _is_completion(data: dict[str, Any]) -> bool:
    if not data.get("upload_id"):
        return False
    if data.get("destination_path"):
        return True
    progress = data.get("upload_progress", data.get("progress", 0))
    # same lax coercion pydantic applies to the progress field
    try:
        return float(progress) >= COMPLETE_PROGRESS
    except (TypeError, ValueError):
        return False


def _completion_payload(data: dict[str, Any]) -> dict[str, Any]:
    if data.get("destination_path"):
        return data
    # Original wire format: the link travels in "path" and the source path is gone.
    payload = dict(data)
    payload["destination_path"] = payload.pop("path", "")
    return payload


def classify_event(data: Any) -> ChannelEvent:
    """Turn a decoded JSON value into a channel event.

    Raises:
        MalformedEventError: If the value is not a recognizable event
    """
    if not isinstance(data, dict):
        raise MalformedEventError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        if data.get("error"):
            return ServerError.model_validate(data)
        if _is_completion(data):
            return CompletionEvent.model_validate(_completion_payload(data))
        return ProgressUpdate.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid event payload: {e}") from e


def parse_channel_event(frame: str | bytes) -> ChannelEvent:
    """Decode and validate one push channel frame.

    Raises:
        MalformedEventError: If the frame is not valid JSON or not an event
    """
    try:
        data = json.loads(frame)
    except (TypeError, ValueError) as e:
        raise MalformedEventError(f"Frame is not valid JSON: {e}") from e
    return classify_event(data)


def parse_initiation_ack(data: Any) -> InitiationAck:
    """Validate the response body of GET /upload."""
    if not isinstance(data, dict):
        raise MalformedEventError("Upload acknowledgment is not a JSON object")
    try:
        return InitiationAck.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid upload acknowledgment: {e}") from e


def parse_deletion_ack(data: Any) -> DeletionAck:
    """Validate the response body of GET /delete."""
    if not isinstance(data, dict):
        raise MalformedEventError("Deletion acknowledgment is not a JSON object")
    try:
        return DeletionAck.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid deletion acknowledgment: {e}") from e


def parse_listing(data: Any) -> list[FileRecord]:
    """Convert the GET /files response into records, in listing order.

    Entries that fail validation are skipped with a warning.
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedEventError("File listing is not a JSON array")

    records: list[FileRecord] = []
    for position, item in enumerate(data):
        try:
            records.append(ListingEntry.model_validate(item).to_record())
        except (ValidationError, MalformedEventError, ValueError) as e:
            logger.warning(f"Skipping listing entry {position}: {e}")
    return records
