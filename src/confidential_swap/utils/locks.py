"""Transaction serialization.

Every public operation runs under one process-wide lock, so no operation can observe
another's partially applied effects. This is the only concurrency primitive the swap
service relies on.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    status_code = 503


class TransactionLock:
    """Serializes transactions against shared ledger state.

    Example:
        lock = TransactionLock(timeout=30.0)
        async with lock.hold("swap"):
            # consume authorization, debit, pay out
            ...
    """

    def __init__(self, timeout: Optional[float] = 30.0):
        """Initialize the lock.

        Args:
            timeout: Maximum time to wait for the lock (None = wait forever)
        """
        self.timeout = timeout
        self._lock = asyncio.Lock()
        self._sequence = 0

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def transactions(self) -> int:
        """Number of transactions that have acquired the lock."""
        return self._sequence

    @asynccontextmanager
    async def hold(self, operation: str = "transaction") -> AsyncIterator[int]:
        """Acquire the lock for one transaction.

        Yields:
            Sequence number of the transaction
        """
        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
        except asyncio.TimeoutError:
            logger.warning(f"Lock timeout after {self.timeout}s: {operation}")
            raise LockTimeoutError(
                f"Could not start {operation} within {self.timeout}s"
            )

        self._sequence += 1
        sequence = self._sequence
        logger.debug(f"Transaction #{sequence} started: {operation}")
        try:
            yield sequence
        finally:
            self._lock.release()
            logger.debug(f"Transaction #{sequence} finished: {operation}")
