"""Pytest fixtures for upload_tracker tests."""

from __future__ import annotations

import pytest
from helpers import RecordingProjector

from upload_tracker.channel import ProgressChannel
from upload_tracker.models import FileRecord
from upload_tracker.registry import FileRegistry
from upload_tracker.resolver import IdentityResolver


@pytest.fixture
def idle_records() -> list[FileRecord]:
    """Two distinct idle files, as listed by the server."""
    return [
        FileRecord(name="f", path="/data/f", size=10),
        FileRecord(name="g", path="/data/g", size=20),
    ]


@pytest.fixture
def projector() -> RecordingProjector:
    return RecordingProjector()


@pytest.fixture
def registry(idle_records: list[FileRecord], projector: RecordingProjector) -> FileRegistry:
    """Registry seeded with the idle records."""
    return FileRegistry(idle_records, projector=projector)


@pytest.fixture
def resolver(registry: FileRegistry) -> IdentityResolver:
    return IdentityResolver(registry)


@pytest.fixture
def channel(registry: FileRegistry, resolver: IdentityResolver) -> ProgressChannel:
    """Channel that is never connected; events are applied directly."""
    return ProgressChannel("ws://testserver/socket", registry, resolver)
