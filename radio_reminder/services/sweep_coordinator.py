"""
Sweep Coordination

Single-flight guard around the expiry sweep. Owned by one lifecycle engine
instance; separate engines never share a guard.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class SweepCoordinator:
    """
    Prevents concurrent sweeps.

    A caller arriving while a sweep is running gets the `skipped` value back
    immediately instead of queuing behind the running sweep.
    """

    def __init__(self) -> None:
        self._sweep_lock = asyncio.Lock()

    async def execute(self, sweep_func: Callable[[], Awaitable[T]], skipped: T) -> T:
        """
        Execute a sweep with single-flight protection.

        Args:
            sweep_func: Async function performing the sweep
            skipped: Value returned when a sweep is already in progress

        Returns:
            Result of sweep_func, or `skipped`

        Raises:
            Any exception raised by sweep_func
        """
        # Checking and acquiring happen without an await in between
        if self._sweep_lock.locked():
            logger.warning("Expiry sweep already in progress, skipping this request")
            return skipped

        async with self._sweep_lock:
            return await sweep_func()

    def is_sweeping(self) -> bool:
        return self._sweep_lock.locked()
