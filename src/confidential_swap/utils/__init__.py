"""Utility modules for the swap service."""

from confidential_swap.utils.locks import LockTimeoutError, TransactionLock

__all__ = ["LockTimeoutError", "TransactionLock"]
