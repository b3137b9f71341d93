"""Locate the registry record an event refers to."""

from __future__ import annotations

import logging

from upload_tracker.events import CompletionEvent, ProgressUpdate
from upload_tracker.models import FileRecord, RecordState
from upload_tracker.registry import FileRegistry

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Match events to records without a shared stable identifier.

    Lookup order is correlation token, then source path, then the
    (name, size) pair. Completed records never match a progress or
    completion event, so a stale event arriving after completion is dropped.
    When several records share the same (name, size), an in-flight one
    wins over an idle one, then the first in registry order.
    """

    def __init__(self, registry: FileRegistry) -> None:
        self._registry = registry

    def resolve(self, event: ProgressUpdate | CompletionEvent) -> int | None:
        """Return the index of the record event refers to, or None."""
        if event.token:
            index = self._registry.find(
                lambda r: r.token == event.token and not r.is_complete
            )
            if index is not None:
                return index

        if event.path:
            index = self.resolve_path(event.path)
            if index is not None:
                return index

        return self.resolve_name_size(event.name, event.size)

    def resolve_path(self, path: str) -> int | None:
        """Return the index of the not-yet-complete record with this source path."""
        if not path:
            return None
        return self._registry.find(lambda r: r.path == path and not r.is_complete)

    def resolve_name_size(self, name: str, size: int) -> int | None:
        """Return the not-yet-complete record with this name and size.

        In-flight records rank ahead of idle ones; ties go to the first in
        registry order.
        """

        def matches(record: FileRecord) -> bool:
            return record.name == name and record.size == size and not record.is_complete

        candidates = self._registry.find_all(matches)
        if not candidates:
            return None
        in_flight = [
            i for i in candidates if self._registry.get(i).state is RecordState.IN_FLIGHT
        ]
        chosen = (in_flight or candidates)[0]
        if len(candidates) > 1:
            logger.debug(
                f"Ambiguous match for {name!r} ({size} bytes): rows {candidates}, using {chosen}"
            )
        return chosen

    def resolve_upload_id(self, upload_id: str) -> int | None:
        """Return the index of the completed record holding upload_id."""
        if not upload_id:
            return None
        return self._registry.find(lambda r: r.upload_id == upload_id and r.is_complete)
