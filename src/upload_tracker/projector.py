"""Terminal view of the file registry."""

from __future__ import annotations

from collections.abc import Sequence

import click

from upload_tracker.models import FileRecord, RecordState


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable form."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_row(record: FileRecord) -> str:
    """Render one record as a styled line of text."""
    state = record.state
    if state is RecordState.COMPLETE:
        return click.style("✓ ", fg="green") + f"{record.name} -> {record.destination_path}"
    if state is RecordState.IN_FLIGHT:
        return click.style(
            f"Uploading {record.name} {record.upload_progress:.2f}%", fg="yellow"
        )
    return f"{record.name} ({format_size(record.size)})"


class ConsoleProjector:
    """Print rows to the terminal. Redraws print the changed row with its index."""

    def __init__(self, *, err: bool = False) -> None:
        self._err = err

    def render(self, records: Sequence[FileRecord]) -> None:
        if not records:
            click.echo("(no files)", err=self._err)
            return
        for index, record in enumerate(records):
            self.redraw(index, record)

    def redraw(self, index: int, record: FileRecord) -> None:
        click.echo(f"[{index}] {format_row(record)}", err=self._err)
