"""Background "new events" count polling at the live edge."""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from logexplorer.errors import LogExplorerError

logger = logging.getLogger(__name__)

POLL_JOB_ID = "pending-count"

CountFn = Callable[[], Awaitable[Optional[int]]]


class PollState(Enum):
    STOPPED = "stopped"
    POLLING = "polling"
    SUSPENDED = "suspended"


class PollController:
    """Runs a periodic count query and exposes the result as ``pending_count``.

    - POLLING: the interval job is active and ticks update ``pending_count``.
    - SUSPENDED: the job is paused (e.g. while a custom query is shown).
    - STOPPED: the scheduler is shut down; ``start()`` brings it back.

    A tick never touches the ResultSet. Tick failures are logged and
    swallowed. ``reset_count()`` zeroes the count and invalidates any tick
    that is still in flight, so a stale count cannot reappear after a refresh.
    """

    def __init__(self, count_fn: CountFn, interval: float = 5.0):
        self._count_fn = count_fn
        self.interval = interval
        self.pending_count = 0
        self.state = PollState.STOPPED
        self._generation = 0
        self._scheduler: Optional[AsyncIOScheduler] = None

    def start(self, suspended: bool = False) -> None:
        """Start the interval job. Must be called from a running event loop."""
        if self.state is not PollState.STOPPED:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.interval,
            id=POLL_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start(paused=suspended)
        self.state = PollState.SUSPENDED if suspended else PollState.POLLING
        logger.debug("Poller started (interval=%.1fs, state=%s)", self.interval, self.state.value)

    def suspend(self) -> None:
        if self.state is not PollState.POLLING:
            return
        self._scheduler.pause()
        self._generation += 1
        self.state = PollState.SUSPENDED
        logger.debug("Poller suspended")

    def resume(self) -> None:
        if self.state is not PollState.SUSPENDED:
            return
        self._scheduler.resume()
        self.state = PollState.POLLING
        logger.debug("Poller resumed")

    def stop(self) -> None:
        if self.state is PollState.STOPPED:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._generation += 1
        self.state = PollState.STOPPED
        logger.debug("Poller stopped")

    def reset_count(self) -> None:
        """Zero the count and ignore any tick currently in flight."""
        self._generation += 1
        self.pending_count = 0

    async def tick(self) -> None:
        """Run one count query. Also callable directly, outside the schedule."""
        if self.state is not PollState.POLLING:
            return
        generation = self._generation
        try:
            count = await self._count_fn()
        except LogExplorerError as e:
            logger.warning("Pending count poll failed: %s", e)
            return

        if generation != self._generation:
            logger.debug("Dropping pending count from before the last reset")
            return
        if count is None:
            logger.debug("Count response carried no count")
            return
        self.pending_count = count
