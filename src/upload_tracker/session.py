"""UploadSession, the entry point that wires the reconciliation components together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from upload_tracker._internal.api import UploadServerAPI
from upload_tracker.channel import ChannelState, Connector, ProgressChannel, socket_url
from upload_tracker.config import Settings
from upload_tracker.deletion import DeletionHandler
from upload_tracker.events import parse_listing
from upload_tracker.exceptions import MalformedEventError, RequestFailedError
from upload_tracker.initiator import UploadInitiator, open_in_browser
from upload_tracker.models import DeleteOutcome, FileRecord, InitiateOutcome
from upload_tracker.reconnect import ReconnectPolicy, run_with_reconnect
from upload_tracker.registry import FileRegistry, ViewProjector
from upload_tracker.resolver import IdentityResolver

logger = logging.getLogger(__name__)


class UploadSession:
    """Client-side view of the files on an upload server.

    Loads the listing, starts and deletes uploads, and keeps the registry
    current from the push channel. All methods must be awaited on one event
    loop; the registry is not safe to touch from other threads.

    Example:
        async with UploadSession(Settings.from_env(), projector=ConsoleProjector()) as session:
            await session.load()
            listener = asyncio.create_task(session.listen_forever())
            await session.upload("/data/videos/talk.mp4")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        projector: ViewProjector | None = None,
        http_client: httpx.AsyncClient | None = None,
        connect: Connector | None = None,
        opener: Callable[[str], None] = open_in_browser,
        on_channel_state: Callable[[ChannelState], None] | None = None,
        on_server_error: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            settings: Server location and tuning; defaults to Settings()
            projector: View notified of every registry change
            http_client: Optional preconfigured httpx.AsyncClient
            connect: Optional websocket connector (defaults to websockets)
            opener: Callable used to open external links
            on_channel_state: Called on every channel state change
            on_server_error: Called with errors the server pushes
        """
        self.settings = settings or Settings()
        self._api = UploadServerAPI(
            self.settings.base_url, timeout=self.settings.timeout, client=http_client
        )
        self.registry = FileRegistry(projector=projector)
        self.resolver = IdentityResolver(self.registry)
        self.initiator = UploadInitiator(
            self._api,
            self.registry,
            self.resolver,
            external_hosts=self.settings.external_hosts,
            opener=opener,
        )
        self.deletion = DeletionHandler(self._api, self.registry, self.resolver)
        self.channel = ProgressChannel(
            socket_url(self.settings.base_url, self.settings.socket_path),
            self.registry,
            self.resolver,
            connect=connect,
            on_state_change=on_channel_state,
            on_server_error=on_server_error,
        )

    async def __aenter__(self) -> UploadSession:
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager."""
        await self.close()

    @property
    def channel_state(self) -> ChannelState:
        return self.channel.state

    async def load(self) -> list[FileRecord]:
        """Fetch the file listing and seed the registry with it.

        Raises:
            RequestFailedError: If the listing cannot be fetched or decoded
        """
        data = await self._api.list_files()
        try:
            records = parse_listing(data)
        except MalformedEventError as e:
            raise RequestFailedError(f"Invalid file listing: {e}") from e
        self.registry.load(records)
        return records

    async def upload(self, path: str) -> InitiateOutcome:
        """Start uploading the file at path (or open it, if it is an external link)."""
        return await self.initiator.initiate(path)

    async def upload_many(
        self,
        paths: Iterable[str],
        *,
        stop_on_error: bool = False,
    ) -> list[InitiateOutcome]:
        """Start uploading several files, in order."""
        return await self.initiator.initiate_many(paths, stop_on_error=stop_on_error)

    async def delete(self, upload_id: str) -> DeleteOutcome:
        """Delete a completed upload and reset its record."""
        return await self.deletion.delete(upload_id)

    async def listen(self) -> None:
        """Run one progress channel session until the connection ends."""
        await self.channel.run()

    async def listen_forever(self, policy: ReconnectPolicy | None = None) -> None:
        """Keep the progress channel connected, reconnecting with backoff."""
        policy = policy or ReconnectPolicy(
            initial_delay=self.settings.reconnect_delay,
            max_delay=self.settings.reconnect_max_delay,
        )
        await run_with_reconnect(self.channel, policy)

    async def close(self) -> None:
        """Close the channel for good, then the HTTP client. The registry is left as is.

        A running listen() or listen_forever() returns instead of reconnecting.
        """
        await self.channel.close()
        await self._api.aclose()
