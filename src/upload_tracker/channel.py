"""Receive-only push channel that merges upload events into the registry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol

from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from upload_tracker.events import (
    ChannelEvent,
    CompletionEvent,
    ProgressUpdate,
    ServerError,
    parse_channel_event,
)
from upload_tracker.exceptions import ChannelClosedError, MalformedEventError, UnresolvedEventError
from upload_tracker.registry import FileRegistry
from upload_tracker.resolver import IdentityResolver

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Connection state of the progress channel."""

    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"


class Connection(Protocol):
    """The part of a websocket connection the channel uses."""

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def close(self) -> None: ...


Connector = Callable[[str], AbstractAsyncContextManager[Any]]


def socket_url(base_url: str, socket_path: str = "/socket") -> str:
    """Build the ws(s):// URL of the push endpoint from the http(s):// base URL."""
    base_url = base_url.rstrip("/")
    if base_url.startswith("https://"):
        ws_base = "wss://" + base_url[len("https://") :]
    elif base_url.startswith("http://"):
        ws_base = "ws://" + base_url[len("http://") :]
    else:
        ws_base = base_url
    if not socket_path.startswith("/"):
        socket_path = "/" + socket_path
    return f"{ws_base}{socket_path}"


class ProgressChannel:
    """Consume upload events from the push endpoint.

    One call to run() is one session: CLOSED -> CONNECTING -> OPEN -> CLOSED.
    The channel never reconnects on its own and never sends anything.
    Closing it leaves the registry as it is and is final: a closed channel
    applies no further events and run() returns without connecting.
    """

    def __init__(
        self,
        url: str,
        registry: FileRegistry,
        resolver: IdentityResolver,
        *,
        connect: Connector | None = None,
        on_state_change: Callable[[ChannelState], None] | None = None,
        on_server_error: Callable[[str], None] | None = None,
    ) -> None:
        self.url = url
        self._registry = registry
        self._resolver = resolver
        self._connect: Connector = connect or websocket_connect
        self._on_state_change = on_state_change
        self._on_server_error = on_server_error
        self._state = ChannelState.CLOSED
        self._connection: Connection | None = None
        self._closing = False

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def closing(self) -> bool:
        """True once close() has been called."""
        return self._closing

    def _set_state(self, state: ChannelState) -> None:
        if state is self._state:
            return
        self._state = state
        if state is ChannelState.OPEN:
            logger.info(f"Progress channel opened ({self.url})")
        elif state is ChannelState.CLOSED:
            logger.info("Progress channel closed")
        if self._on_state_change is not None:
            self._on_state_change(state)

    async def run(self) -> None:
        """Connect and apply events until the connection ends.

        Returns immediately if the channel has been closed.

        Raises:
            ChannelClosedError: If the connection could not be opened
            RuntimeError: If the channel is already running
        """
        if self._state is not ChannelState.CLOSED:
            raise RuntimeError(f"Progress channel is already {self._state.value}")
        if self._closing:
            logger.debug("Progress channel was closed; not connecting")
            return

        self._set_state(ChannelState.CONNECTING)
        opened = False
        try:
            async with self._connect(self.url) as connection:
                if self._closing:
                    # close() ran while the handshake was in progress
                    await connection.close()
                    return
                self._connection = connection
                opened = True
                self._set_state(ChannelState.OPEN)
                try:
                    async for frame in connection:
                        if self._closing:
                            break
                        self.handle_frame(frame)
                except ConnectionClosed as e:
                    logger.warning(f"Progress channel dropped: {e}")
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
            if not opened:
                raise ChannelClosedError(f"Could not open progress channel {self.url}: {e}") from e
            logger.warning(f"Progress channel ended with error: {e}")
        finally:
            self._connection = None
            self._set_state(ChannelState.CLOSED)

    async def close(self) -> None:
        """Close the connection from the client side and stop future sessions.

        Safe to call at any time, including while connecting.
        """
        self._closing = True
        connection = self._connection
        if connection is not None:
            await connection.close()

    def handle_frame(self, frame: str | bytes) -> bool:
        """Parse one raw frame and apply it. Returns True if the registry changed."""
        try:
            event = parse_channel_event(frame)
        except MalformedEventError as e:
            logger.warning(f"Dropping malformed event: {e}")
            return False
        return self.apply(event)

    def apply(self, event: ChannelEvent) -> bool:
        """Merge one event into the registry. Returns True if the registry changed."""
        if isinstance(event, ServerError):
            logger.error(f"Upload server reported: {event.error}")
            if self._on_server_error is not None:
                self._on_server_error(event.error)
            return False

        index = self._resolver.resolve(event)
        if index is None:
            unresolved = UnresolvedEventError(
                f"No file matches event for {event.name!r} ({event.size} bytes)", event
            )
            logger.warning(f"Dropping event: {unresolved}")
            return False

        record = self._registry.get(index)
        if isinstance(event, CompletionEvent):
            updated = record.completed(event.upload_id, event.destination_path, event.token)
            logger.info(f"Upload of {record.name} complete: {event.destination_path}")
        elif isinstance(event, ProgressUpdate):
            updated = record.with_progress(event.upload_progress, event.token)
            logger.debug(f"{record.name}: {updated.upload_progress:.2f}%")
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        self._registry.replace(index, updated)
        return True
