"""Reconnect policy layered on top of the progress channel."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from upload_tracker.channel import ProgressChannel
from upload_tracker.exceptions import ChannelClosedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconnectPolicy:
    """Exponential backoff between channel sessions.

    The delay starts at initial_delay, is multiplied by factor after each
    failed connection attempt, never exceeds max_delay, and goes back to
    initial_delay once a session has opened. max_attempts counts consecutive
    failed attempts; None retries forever.
    """

    initial_delay: float = 1.0
    max_delay: float = 30.0
    factor: float = 2.0
    max_attempts: int | None = None

    def __post_init__(self) -> None:
        if self.initial_delay < 0 or self.max_delay < self.initial_delay:
            raise ValueError("Reconnect delays must satisfy 0 <= initial_delay <= max_delay")
        if self.factor < 1:
            raise ValueError("Reconnect factor must be at least 1")

    def next_delay(self, delay: float) -> float:
        return min(delay * self.factor, self.max_delay)


async def run_with_reconnect(
    channel: ProgressChannel,
    policy: ReconnectPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Run channel sessions back to back until the channel is closed or the task cancelled.

    Raises:
        ChannelClosedError: When max_attempts consecutive connections fail
    """
    policy = policy or ReconnectPolicy()
    delay = policy.initial_delay
    failures = 0

    while not channel.closing:
        try:
            await channel.run()
        except ChannelClosedError as e:
            if channel.closing:
                break
            failures += 1
            if policy.max_attempts is not None and failures >= policy.max_attempts:
                logger.error(f"Giving up on progress channel after {failures} attempt(s)")
                raise
            logger.warning(f"{e}; retrying in {delay:.1f}s")
            await sleep(delay)
            delay = policy.next_delay(delay)
            continue

        if channel.closing:
            break
        failures = 0
        delay = policy.initial_delay
        logger.info(f"Progress channel ended; reconnecting in {delay:.1f}s")
        await sleep(delay)

    logger.info("Progress channel closed; not reconnecting")
