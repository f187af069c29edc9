"""Repository for ledger operations."""

import json
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from confidential_swap.ledger.models import (
    ConfigKey,
    EncryptedBalance,
    Event,
    EventKind,
    SwapAuthorization,
    SystemConfig,
)


class LedgerRepository:
    """Repository for all ledger-related database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Balance operations
    async def get_balance(self, account: str) -> Optional[EncryptedBalance]:
        """Get the encrypted balance row for an account."""
        stmt = select(EncryptedBalance).where(EncryptedBalance.account == account)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def store_balance(
        self, account: str, ciphertext_hex: str, readers: list[str]
    ) -> EncryptedBalance:
        """Create or overwrite an account's ciphertext."""
        balance = await self.get_balance(account)
        if balance is None:
            balance = EncryptedBalance(account=account, ciphertext=ciphertext_hex, updates=0)
            self.session.add(balance)

        balance.ciphertext = ciphertext_hex
        balance.readers = json.dumps(sorted(readers))
        balance.updates = (balance.updates or 0) + 1
        await self.session.flush()
        return balance

    # Authorization operations
    async def get_authorization(self, request_id: int) -> Optional[SwapAuthorization]:
        """Get the live authorization for a request id."""
        stmt = select(SwapAuthorization).where(SwapAuthorization.request_id == request_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_authorization(
        self,
        request_id: int,
        requester: str,
        tag: str,
        fee_paid: int,
        created_at: datetime,
    ) -> SwapAuthorization:
        """Record a new authorization."""
        authorization = SwapAuthorization(
            request_id=request_id,
            requester=requester,
            tag=tag,
            fee_paid=fee_paid,
            created_at=created_at,
        )
        self.session.add(authorization)
        await self.session.flush()
        return authorization

    async def delete_authorization(self, authorization: SwapAuthorization) -> None:
        """Remove an authorization (consumed, cancelled or expired)."""
        await self.session.delete(authorization)
        await self.session.flush()

    async def get_requester_authorizations(self, requester: str) -> list[SwapAuthorization]:
        """Get live authorizations created by one requester."""
        stmt = (
            select(SwapAuthorization)
            .where(SwapAuthorization.requester == requester)
            .order_by(SwapAuthorization.request_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # System config operations
    async def get_config(self, key: ConfigKey) -> Optional[str]:
        """Get a config value."""
        stmt = select(SystemConfig).where(SystemConfig.key == key.value)
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return row.value if row is not None else None

    async def set_config(self, key: ConfigKey, value: str) -> SystemConfig:
        """Create or update a config value."""
        stmt = select(SystemConfig).where(SystemConfig.key == key.value)
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            row = SystemConfig(key=key.value, value=value)
            self.session.add(row)
        else:
            row.value = value
        await self.session.flush()
        return row

    async def ensure_config(self, key: ConfigKey, default: str) -> str:
        """Return the stored value, storing ``default`` first if the key is new."""
        value = await self.get_config(key)
        if value is None:
            await self.set_config(key, default)
            return default
        return value

    async def increment_counter(self, key: ConfigKey) -> int:
        """Increment an integer config value and return the new value."""
        current = int(await self.get_config(key) or 0)
        await self.set_config(key, str(current + 1))
        return current + 1

    # Event operations
    async def record_event(
        self,
        kind: EventKind,
        account: str,
        request_id: Optional[int] = None,
        amount_handle: Optional[str] = None,
        payout: Optional[int] = None,
    ) -> Event:
        """Append an event to the log."""
        event = Event(
            kind=kind.value,
            account=account,
            request_id=request_id,
            amount_handle=amount_handle,
            payout=payout,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def get_events(
        self,
        kind: Optional[EventKind] = None,
        account: Optional[str] = None,
        limit: int = 50,
    ) -> list[Event]:
        """Get events, newest first."""
        stmt = select(Event).order_by(Event.id.desc()).limit(limit)
        if kind is not None:
            stmt = stmt.where(Event.kind == kind.value)
        if account is not None:
            stmt = stmt.where(Event.account == account)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
