"""Completion signal used to make shutdown wait for a grounded vehicle."""

import asyncio

from src.skylet.utils.logging import get_logger

logger = get_logger(__name__)


class CompletionSignal:
    """Counter of flight cycles in progress.

    ``begin`` is called when a cycle starts, ``release`` when its terminal
    action runs; ``wait`` blocks until no cycle is in progress.
    """

    def __init__(self) -> None:
        self._pending = 0
        self._releases = 0
        self._condition = asyncio.Condition()

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def release_count(self) -> int:
        """Total number of releases since creation."""
        return self._releases

    def begin(self) -> None:
        self._pending += 1
        logger.debug(f"Flight cycle started ({self._pending} pending)")

    async def release(self) -> bool:
        """Mark one cycle finished.

        Returns:
            False if no cycle was pending
        """
        async with self._condition:
            if self._pending == 0:
                logger.warning("Completion signal released with no flight cycle pending")
                return False
            self._pending -= 1
            self._releases += 1
            logger.debug(f"Flight cycle completed ({self._pending} pending)")
            self._condition.notify_all()
        return True

    async def wait(self, timeout: float | None = None) -> None:
        """Block until no cycle is pending.

        Raises:
            asyncio.TimeoutError: If cycles are still pending after ``timeout``
        """
        async with self._condition:
            await asyncio.wait_for(
                self._condition.wait_for(lambda: self._pending == 0), timeout=timeout
            )
