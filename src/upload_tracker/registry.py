"""Ordered file registry, the single source of truth for rendered rows."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Protocol

from upload_tracker.models import FileRecord

logger = logging.getLogger(__name__)


class ViewProjector(Protocol):
    """Renders the registry. Notified after every change."""

    def render(self, records: Sequence[FileRecord]) -> None:
        """Redraw every row."""
        ...

    def redraw(self, index: int, record: FileRecord) -> None:
        """Redraw the single row at index."""
        ...


class NullProjector:
    """Projector that renders nothing."""

    def render(self, records: Sequence[FileRecord]) -> None:
        pass

    def redraw(self, index: int, record: FileRecord) -> None:
        pass


class FileRegistry:
    """Insertion-ordered collection of file records.

    Records are replaced in place by index and never reordered or removed.
    All access must happen from the event loop thread.
    """

    def __init__(
        self,
        records: Iterable[FileRecord] = (),
        projector: ViewProjector | None = None,
    ) -> None:
        self._records: list[FileRecord] = list(records)
        self._projector: ViewProjector = projector or NullProjector()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(list(self._records))

    @property
    def projector(self) -> ViewProjector:
        return self._projector

    def load(self, records: Iterable[FileRecord]) -> None:
        """Replace the whole registry with a fresh listing and render it."""
        self._records = list(records)
        logger.info(f"Loaded {len(self._records)} file(s)")
        self._projector.render(self.snapshot())

    def snapshot(self) -> tuple[FileRecord, ...]:
        """Return the current records as an immutable sequence."""
        return tuple(self._records)

    def get(self, index: int) -> FileRecord:
        """Return the record at index.

        Raises:
            IndexError: If index is outside the registry
        """
        self._check_index(index)
        return self._records[index]

    def replace(self, index: int, record: FileRecord) -> None:
        """Store record at index, then ask the projector to redraw that row.

        Raises:
            IndexError: If index is outside the registry
        """
        self._check_index(index)
        self._records[index] = record
        self._projector.redraw(index, record)

    def find(self, predicate: Callable[[FileRecord], bool]) -> int | None:
        """Return the index of the first record matching predicate, or None."""
        for index, record in enumerate(self._records):
            if predicate(record):
                return index
        return None

    def find_all(self, predicate: Callable[[FileRecord], bool]) -> list[int]:
        """Return the indexes of every record matching predicate."""
        return [index for index, record in enumerate(self._records) if predicate(record)]

    def _check_index(self, index: int) -> None:
        # Negative indexes would silently address rows from the end.
        if not 0 <= index < len(self._records):
            raise IndexError(f"Registry index out of range: {index}")
