import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class ShuttingDown(Exception):
    """Raised when new work is started after shutdown began."""


class InFlightTracker:
    """Counts running reconciliations so shutdown can wait for them to finish."""

    def __init__(self):
        self._count = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self.stopping = False

    @property
    def count(self) -> int:
        return self._count

    @contextlib.asynccontextmanager
    async def track(self) -> AsyncIterator[None]:
        if self.stopping:
            raise ShuttingDown()
        self._count += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._count -= 1
            if self._count == 0:
                self._idle.set()

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Stops accepting new work and waits for running work to finish.

        Returns:
            False if the timeout elapsed with work still running.
        """
        self.stopping = True
        if self._count:
            logger.info(f"Waiting on {self._count} running reconciliation(s) to finish...")
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self._count} reconciliation(s) still running after {timeout}s, giving up waiting")
            return False
        return True
