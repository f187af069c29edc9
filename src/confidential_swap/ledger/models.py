"""SQLAlchemy models for the ledger."""

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Index, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class EventKind(str, Enum):
    """Kinds of emitted events."""

    SWAP_REQUESTED = "swap_requested"
    SWAP_COMPLETED = "swap_completed"


class ConfigKey(str, Enum):
    """Keys stored in the system_config table."""

    EXCHANGE_RATE = "exchange_rate"
    ORACLE_ADDRESS = "oracle_address"
    RESERVE_ADDRESS = "reserve_address"
    REQUEST_COUNTER = "request_counter"


class EncryptedBalance(Base):
    """Encrypted balance of one account.

    Rows are created on first credit or debit and never deleted.
    """

    __tablename__ = "encrypted_balances"

    account: Mapped[str] = mapped_column(String(255), primary_key=True)
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)  # hex
    readers: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list
    updates: Mapped[int] = mapped_column(default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SwapAuthorization(Base):
    """Single-use right to swap, keyed by the oracle request id."""

    __tablename__ = "swap_authorizations"
    __table_args__ = (Index("ix_swap_authorizations_requester", "requester"),)

    request_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    requester: Mapped[str] = mapped_column(String(255), nullable=False)
    tag: Mapped[str] = mapped_column(String(66), nullable=False)
    fee_paid: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SystemConfig(Base):
    """Key/value store for construction-time parameters and counters."""

    __tablename__ = "system_config"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Event(Base):
    """Append-only log of emitted events."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    account: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    request_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    amount_handle: Mapped[str | None] = mapped_column(String(66), nullable=True)
    payout: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
