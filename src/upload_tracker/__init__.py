"""Upload Tracker - keep a client-side file list in sync with server-side uploads.

Example usage:
    import asyncio
    from upload_tracker import ConsoleProjector, Settings, UploadSession

    async def main():
        async with UploadSession(Settings.from_env(), projector=ConsoleProjector()) as session:
            await session.load()
            listener = asyncio.create_task(session.listen_forever())
            outcome = await session.upload("/data/videos/talk.mp4")
            print(f"Upload {'started' if outcome.success else 'failed'}")
            await listener
"""

from upload_tracker.channel import ChannelState, ProgressChannel
from upload_tracker.config import Settings, setup_logging
from upload_tracker.deletion import DeletionHandler
from upload_tracker.events import (
    CompletionEvent,
    DeletionAck,
    InitiationAck,
    ProgressUpdate,
    ServerError,
)
from upload_tracker.exceptions import (
    ChannelClosedError,
    InvalidTargetError,
    MalformedEventError,
    RequestFailedError,
    UnresolvedEventError,
    UploadTrackerError,
)
from upload_tracker.initiator import UploadInitiator
from upload_tracker.models import (
    DeleteOutcome,
    DeleteStatus,
    FileRecord,
    InitiateOutcome,
    InitiateStatus,
    RecordState,
)
from upload_tracker.projector import ConsoleProjector
from upload_tracker.reconnect import ReconnectPolicy, run_with_reconnect
from upload_tracker.registry import FileRegistry, NullProjector, ViewProjector
from upload_tracker.resolver import IdentityResolver
from upload_tracker.session import UploadSession

__version__ = "0.1.0"

__all__ = [
    # Main entry point
    "UploadSession",
    "Settings",
    "setup_logging",
    # Components
    "FileRegistry",
    "IdentityResolver",
    "UploadInitiator",
    "ProgressChannel",
    "ChannelState",
    "DeletionHandler",
    "ReconnectPolicy",
    "run_with_reconnect",
    # Views
    "ViewProjector",
    "NullProjector",
    "ConsoleProjector",
    # Models
    "FileRecord",
    "RecordState",
    "InitiateOutcome",
    "InitiateStatus",
    "DeleteOutcome",
    "DeleteStatus",
    # Events
    "InitiationAck",
    "ProgressUpdate",
    "CompletionEvent",
    "DeletionAck",
    "ServerError",
    # Exceptions
    "UploadTrackerError",
    "InvalidTargetError",
    "UnresolvedEventError",
    "MalformedEventError",
    "RequestFailedError",
    "ChannelClosedError",
]
