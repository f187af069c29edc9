"""Ledger module for encrypted balances, authorizations and events."""

from confidential_swap.ledger.database import get_session_factory, init_db, transaction
from confidential_swap.ledger.models import (
    ConfigKey,
    EncryptedBalance,
    Event,
    EventKind,
    SwapAuthorization,
    SystemConfig,
)
from confidential_swap.ledger.repository import LedgerRepository

__all__ = [
    # Models
    "EncryptedBalance",
    "Event",
    "SwapAuthorization",
    "SystemConfig",
    # Enums
    "ConfigKey",
    "EventKind",
    # Database
    "get_session_factory",
    "init_db",
    "transaction",
    "LedgerRepository",
]
