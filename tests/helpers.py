"""Shared test helpers for upload_tracker tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import httpx

from upload_tracker._internal.api import UploadServerAPI
from upload_tracker.models import FileRecord

BASE_URL = "http://testserver"


class RecordingProjector:
    """Projector that remembers every render and redraw."""

    def __init__(self) -> None:
        self.renders: list[tuple[FileRecord, ...]] = []
        self.redraws: list[tuple[int, FileRecord]] = []

    def render(self, records: Sequence[FileRecord]) -> None:
        self.renders.append(tuple(records))

    def redraw(self, index: int, record: FileRecord) -> None:
        self.redraws.append((index, record))


class FakeConnection:
    """In-memory stand-in for a websocket connection."""

    def __init__(
        self,
        frames: Iterable[str | bytes] = (),
        *,
        error: Exception | None = None,
        hold_open: bool = False,
    ) -> None:
        self._frames = list(frames)
        self._error = error
        self._released = asyncio.Event() if hold_open else None
        self.closed = False

    def __aiter__(self) -> AsyncIterator[str | bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str | bytes]:
        for frame in self._frames:
            if self.closed:
                return
            yield frame
        # hold_open connections stay silent until close() is called
        if self._released is not None:
            await self._released.wait()
        if self._error is not None and not self.closed:
            raise self._error

    async def close(self) -> None:
        self.closed = True
        if self._released is not None:
            self._released.set()


async def wait_for(predicate: Callable[[], bool], attempts: int = 100) -> None:
    """Yield to the event loop until predicate holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def make_connector(
    connection: FakeConnection | None = None,
    *,
    error: Exception | None = None,
    urls: list[str] | None = None,
) -> Callable[[str], Any]:
    """Build a connector that yields connection, or raises error on connect."""

    @asynccontextmanager
    async def connect(url: str) -> AsyncIterator[FakeConnection]:
        if urls is not None:
            urls.append(url)
        if error is not None:
            raise error
        yield connection or FakeConnection()

    return connect


def frame(**fields: Any) -> str:
    """Encode a channel frame."""
    return json.dumps(fields)


def make_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


def make_api(handler: Callable[[httpx.Request], httpx.Response]) -> UploadServerAPI:
    return UploadServerAPI(BASE_URL, client=make_http_client(handler))
