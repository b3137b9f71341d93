"""Tests for matching events to records."""

from __future__ import annotations

from upload_tracker.events import CompletionEvent, ProgressUpdate
from upload_tracker.models import FileRecord
from upload_tracker.registry import FileRegistry
from upload_tracker.resolver import IdentityResolver


def progress(name: str, size: int, value: float = 10, **extra) -> ProgressUpdate:
    return ProgressUpdate(name=name, size=size, upload_progress=value, **extra)


class TestResolve:
    """Tests for event resolution order."""

    def test_resolves_by_path_first(self) -> None:
        """Test that an exact path match beats an earlier name/size match."""
        registry = FileRegistry(
            [
                FileRecord(name="f", path="/a/f", size=10),
                FileRecord(name="f", path="/b/f", size=10),
            ]
        )
        resolver = IdentityResolver(registry)

        assert resolver.resolve(progress("f", 10, path="/b/f")) == 1

    def test_resolves_by_name_and_size_without_path(self, resolver: IdentityResolver) -> None:
        """Test the (name, size) fallback."""
        assert resolver.resolve(progress("g", 20)) == 1

    def test_unknown_path_falls_back_to_name_and_size(self, resolver: IdentityResolver) -> None:
        """Test that a path that matches nothing does not prevent a name/size match."""
        assert resolver.resolve(progress("f", 10, path="/elsewhere/f")) == 0

    def test_token_beats_path_and_name(self) -> None:
        """Test that a correlation token is preferred over every other key."""
        registry = FileRegistry(
            [
                FileRecord(name="f", path="/a/f", size=10),
                FileRecord(name="f", path="/b/f", size=10).initiated("t-2"),
            ]
        )
        resolver = IdentityResolver(registry)

        assert resolver.resolve(progress("f", 10, path="/a/f", token="t-2")) == 1

    def test_size_must_match(self, resolver: IdentityResolver) -> None:
        """Test that a name match with another size does not resolve."""
        assert resolver.resolve(progress("f", 11)) is None

    def test_no_match_returns_none(self, resolver: IdentityResolver) -> None:
        """Test that an unknown file resolves to None."""
        assert resolver.resolve(progress("z", 999)) is None

    def test_duplicates_resolve_to_first(self) -> None:
        """Test that duplicate (name, size) pairs resolve to the first row."""
        registry = FileRegistry(
            [
                FileRecord(name="dup", path="/a/dup", size=1),
                FileRecord(name="dup", path="/b/dup", size=1),
            ]
        )

        assert IdentityResolver(registry).resolve(progress("dup", 1)) == 0

    def test_duplicates_prefer_the_row_in_flight(self) -> None:
        """Test that a completion for duplicate rows lands on the one uploading."""
        registry = FileRegistry(
            [
                FileRecord(name="dup", path="/a/dup", size=1),
                FileRecord(name="dup", path="/b/dup", size=1).with_progress(50),
            ]
        )
        done = CompletionEvent(
            name="dup", size=1, upload_id="u2", destination_path="https://x/u2"
        )

        assert IdentityResolver(registry).resolve(done) == 1
        assert IdentityResolver(registry).resolve(progress("dup", 1, 60)) == 1


class TestCompletedRecords:
    """Tests for how completed records take part in resolution."""

    def test_completed_record_does_not_match_events(self) -> None:
        """Test that a late event for a finished upload resolves to nothing."""
        done = FileRecord(name="f", path="/a/f", size=10).completed("u1", "https://x/u1")
        resolver = IdentityResolver(FileRegistry([done]))

        assert resolver.resolve(progress("f", 10, path="/a/f")) is None
        assert (
            resolver.resolve(
                CompletionEvent(name="f", size=10, upload_id="u1", destination_path="https://x/u1")
            )
            is None
        )

    def test_duplicate_skips_completed_row(self) -> None:
        """Test that a completed duplicate is skipped in favour of the open one."""
        registry = FileRegistry(
            [
                FileRecord(name="dup", path="/a/dup", size=1).completed("u1", "https://x/u1"),
                FileRecord(name="dup", path="/b/dup", size=1),
            ]
        )

        assert IdentityResolver(registry).resolve(progress("dup", 1)) == 1

    def test_resolve_upload_id(self) -> None:
        """Test that upload ids resolve only completed records."""
        registry = FileRegistry(
            [
                FileRecord(name="a", path="/a", size=1),
                FileRecord(name="b", path="/b", size=2).completed("u2", "https://x/u2"),
            ]
        )
        resolver = IdentityResolver(registry)

        assert resolver.resolve_upload_id("u2") == 1
        assert resolver.resolve_upload_id("u3") is None
        assert resolver.resolve_upload_id("") is None
