"""Start server-side uploads and apply their acknowledgment."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from urllib.parse import urlparse

import click

from upload_tracker._internal.api import UploadServerAPI
from upload_tracker.events import parse_initiation_ack
from upload_tracker.exceptions import InvalidTargetError, MalformedEventError, RequestFailedError
from upload_tracker.models import InitiateOutcome, InitiateStatus
from upload_tracker.registry import FileRegistry
from upload_tracker.resolver import IdentityResolver

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_HOSTS = ("drive.google.com",)


def open_in_browser(url: str) -> None:
    """Open url in a new browser tab."""
    click.launch(url)


class UploadInitiator:
    """Issue upload requests for Idle records and mark them in flight."""

    def __init__(
        self,
        api: UploadServerAPI,
        registry: FileRegistry,
        resolver: IdentityResolver,
        *,
        external_hosts: Iterable[str] = DEFAULT_EXTERNAL_HOSTS,
        opener: Callable[[str], None] = open_in_browser,
    ) -> None:
        self._api = api
        self._registry = registry
        self._resolver = resolver
        self._external_hosts = tuple(h.lower() for h in external_hosts)
        self._opener = opener
        self._pending: set[str] = set()

    def is_external(self, path: str) -> bool:
        """Check whether path is a link to a resource this system does not manage."""
        parsed = urlparse(path)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            return False
        host = parsed.hostname.lower()
        return any(host == h or host.endswith("." + h) for h in self._external_hosts)

    def _idle_target(self, path: str) -> int:
        """Return the index of the Idle record at path.

        Raises:
            InvalidTargetError: If no such record exists or it is not Idle
        """
        if not path:
            raise InvalidTargetError("Cannot upload a file without a path")
        index = self._registry.find(lambda r: r.path == path)
        if index is None:
            raise InvalidTargetError(f"No listed file has path {path!r}")
        record = self._registry.get(index)
        if not record.is_idle:
            raise InvalidTargetError(f"{record.name} is {record.state.value}, not idle")
        if path in self._pending:
            raise InvalidTargetError(f"Upload of {record.name} is already being started")
        return index

    async def initiate(self, path: str) -> InitiateOutcome:
        """Start uploading the file at path.

        Args:
            path: Source path of an Idle record, or an external link

        Returns:
            InitiateOutcome describing what happened. Failures are reported
            in the outcome and never raised.
        """
        if self.is_external(path):
            self._opener(path)
            logger.info(f"Opened external resource {path}")
            return InitiateOutcome(InitiateStatus.OPENED_EXTERNAL, path)

        try:
            index = self._idle_target(path)
        except InvalidTargetError as e:
            logger.warning(f"Ignoring upload request: {e}")
            return InitiateOutcome(InitiateStatus.INVALID_TARGET, path, error=str(e))

        self._pending.add(path)
        try:
            ack = parse_initiation_ack(await self._api.start_upload(path))
        except (RequestFailedError, MalformedEventError) as e:
            logger.error(f"Upload of {path} was not acknowledged: {e}")
            return InitiateOutcome(
                InitiateStatus.REQUEST_FAILED, path, index=index, error=str(e)
            )
        finally:
            self._pending.discard(path)

        # The registry may have changed while the request was in flight.
        index = self._resolver.resolve_path(path)
        if index is None:
            index = self._registry.find(lambda r: r.path == path)
        if index is None:
            logger.warning(f"Upload of {path} acknowledged but the file is no longer listed")
            return InitiateOutcome(InitiateStatus.ACCEPTED, path)

        record = self._registry.get(index)
        if record.is_complete:
            logger.info(f"Upload of {path} acknowledged after it had already finished")
            return InitiateOutcome(InitiateStatus.ACCEPTED, path, index=index)
        if record.is_idle:
            self._registry.replace(index, record.initiated(ack.token))
        logger.info(f"Uploading {path}")
        return InitiateOutcome(InitiateStatus.ACCEPTED, path, index=index)

    async def initiate_many(
        self,
        paths: Iterable[str],
        *,
        stop_on_error: bool = False,
    ) -> list[InitiateOutcome]:
        """Start several uploads in order.

        Args:
            paths: Source paths to upload
            stop_on_error: If True, stop at the first unsuccessful outcome

        Returns:
            One InitiateOutcome per attempted path
        """
        outcomes: list[InitiateOutcome] = []

        for path in paths:
            outcome = await self.initiate(path)
            outcomes.append(outcome)

            if stop_on_error and not outcome.success:
                break

        return outcomes
