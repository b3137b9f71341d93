"""Delete completed uploads and reset their records."""

from __future__ import annotations

import logging

from upload_tracker._internal.api import UploadServerAPI
from upload_tracker.events import parse_deletion_ack
from upload_tracker.exceptions import InvalidTargetError, MalformedEventError, RequestFailedError
from upload_tracker.models import DeleteOutcome, DeleteStatus
from upload_tracker.registry import FileRegistry
from upload_tracker.resolver import IdentityResolver

logger = logging.getLogger(__name__)


class DeletionHandler:
    """Remove an upload from the destination store and return its record to Idle."""

    def __init__(
        self,
        api: UploadServerAPI,
        registry: FileRegistry,
        resolver: IdentityResolver,
    ) -> None:
        self._api = api
        self._registry = registry
        self._resolver = resolver

    def _complete_target(self, upload_id: str) -> int:
        index = self._resolver.resolve_upload_id(upload_id)
        if index is None:
            raise InvalidTargetError(f"No completed upload has id {upload_id!r}")
        return index

    async def delete(self, upload_id: str) -> DeleteOutcome:
        """Delete the upload identified by upload_id.

        The record is reset only if the server echoes the same upload_id.

        Returns:
            DeleteOutcome describing what happened. Failures are reported
            in the outcome and never raised.
        """
        try:
            self._complete_target(upload_id)
        except InvalidTargetError as e:
            logger.warning(f"Ignoring delete request: {e}")
            return DeleteOutcome(DeleteStatus.INVALID_TARGET, upload_id, error=str(e))

        try:
            ack = parse_deletion_ack(await self._api.delete_upload(upload_id))
        except (RequestFailedError, MalformedEventError) as e:
            logger.error(f"Delete of {upload_id} failed: {e}")
            return DeleteOutcome(DeleteStatus.REQUEST_FAILED, upload_id, error=str(e))

        if ack.upload_id != upload_id:
            error = f"Server did not confirm deletion of {upload_id} (got {ack.upload_id!r})"
            logger.error(error)
            return DeleteOutcome(DeleteStatus.NOT_ECHOED, upload_id, error=error)

        try:
            index = self._complete_target(upload_id)
        except InvalidTargetError as e:
            logger.warning(f"Deleted {upload_id} but its record changed meanwhile: {e}")
            return DeleteOutcome(DeleteStatus.INVALID_TARGET, upload_id, error=str(e))

        record = self._registry.get(index)
        self._registry.replace(index, record.reset())
        logger.info(f"Deleted upload {upload_id} ({record.name})")
        return DeleteOutcome(DeleteStatus.DELETED, upload_id, index=index)
