"""Swap orchestrator.

Composes the confidential ledger, the request lifecycle and the reserve asset into
the public operations: deposit, request a swap, swap, cancel. Each one runs as a single
serialized transaction.

Payout is a fixed placeholder (``PLACEHOLDER_PAYOUT * exchange_rate``) and does not
depend on the swapped magnitude, which stays encrypted end to end.

In ``LiquidityCheckMode.REFERENCE`` the debit and the consumed authorization are
committed *before* the reserve balance is checked, so an InsufficientLiquidity failure
leaves the caller debited with nothing paid out. ``STRICT`` checks liquidity before the
debit and rolls the whole swap back on failure.

In both modes the consumed authorization and the debit are committed before the reserve
transfer is attempted, so a payout can never be replayed off a restored authorization.
If the reserve explicitly refuses the transfer, ``STRICT`` re-credits the amount and
restores the authorization; ``REFERENCE`` keeps both spent. A transfer that errors out
(timeout, gateway failure) leaves its outcome unknown, so nothing is restored in either
mode.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient
from confidential_swap.config import LiquidityCheckMode
from confidential_swap.errors import InsufficientLiquidity, ReserveTransferFailed
from confidential_swap.fhe.algebra import CiphertextAlgebra, ConfidentialAmount
from confidential_swap.fhe.inputs import ExternalCiphertext
from confidential_swap.ledger.database import transaction
from confidential_swap.ledger.models import ConfigKey, Event, EventKind, SwapAuthorization
from confidential_swap.ledger.repository import LedgerRepository
from confidential_swap.services.balance_ledger import ConfidentialBalanceLedger
from confidential_swap.services.requests import RequestLifecycleManager
from confidential_swap.utils.locks import TransactionLock

logger = logging.getLogger(__name__)

PLACEHOLDER_PAYOUT = 100


@dataclass
class SwapResult:
    """Outcome of a completed swap."""

    account: str
    request_id: int
    amount_handle: str
    payout: int


class SwapOrchestrator:
    """Public entry point for deposits and swaps."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        algebra: CiphertextAlgebra,
        oracle: EntropyOracleClient,
        reserve: ReserveAssetClient,
        contract_address: str,
        exchange_rate: int = 1,
        liquidity_check: LiquidityCheckMode = LiquidityCheckMode.REFERENCE,
        authorization_ttl_seconds: Optional[int] = None,
        lock: Optional[TransactionLock] = None,
    ):
        self.session_factory = session_factory
        self.algebra = algebra
        self.oracle = oracle
        self.reserve = reserve
        self.contract_address = contract_address
        self.exchange_rate = exchange_rate
        self.liquidity_check = liquidity_check
        self.authorization_ttl_seconds = authorization_ttl_seconds
        self.lock = lock or TransactionLock()

    async def initialize(self) -> None:
        """Persist construction parameters on first start, reload them afterwards."""
        async with self._transaction("initialize") as repo:
            stored_rate = int(
                await repo.ensure_config(ConfigKey.EXCHANGE_RATE, str(self.exchange_rate))
            )
            await repo.ensure_config(ConfigKey.ORACLE_ADDRESS, self.oracle.address)
            await repo.ensure_config(ConfigKey.RESERVE_ADDRESS, self.reserve.address)
            await repo.ensure_config(ConfigKey.REQUEST_COUNTER, "0")

        if stored_rate != self.exchange_rate:
            logger.warning(
                f"Exchange rate is fixed at {stored_rate}; ignoring configured {self.exchange_rate}"
            )
        self.exchange_rate = stored_rate
        logger.info(
            f"Swap orchestrator ready: contract={self.contract_address} "
            f"rate={self.exchange_rate} liquidity_check={self.liquidity_check.value}"
        )

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[LedgerRepository]:
        async with self.lock.hold(operation):
            async with transaction(self.session_factory) as session:
                yield LedgerRepository(session)

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[LedgerRepository]:
        async with self.session_factory() as session:
            yield LedgerRepository(session)

    def _ledger(self, repo: LedgerRepository) -> ConfidentialBalanceLedger:
        return ConfidentialBalanceLedger(repo, self.algebra, self.contract_address)

    def _requests(self, repo: LedgerRepository) -> RequestLifecycleManager:
        return RequestLifecycleManager(repo, self.oracle, ttl_seconds=self.authorization_ttl_seconds)

    def _ingest(self, raw: ExternalCiphertext, proof: str, caller: str) -> ConfidentialAmount:
        amount = self.algebra.import_external(raw, proof, caller)
        return self.algebra.allow(amount, self.contract_address)

    def compute_payout(self, amount: ConfidentialAmount) -> int:
        """Reserve units paid for a swap of ``amount``.

        The amount is not consulted: a real conversion needs the cleartext
        magnitude, which this service never sees.
        """
        return PLACEHOLDER_PAYOUT * self.exchange_rate

    # Public operations
    async def deposit(self, caller: str, raw: ExternalCiphertext, proof: str) -> ConfidentialAmount:
        """Credit an encrypted amount to the caller's balance."""
        async with self._transaction("deposit") as repo:
            amount = self._ingest(raw, proof, caller)
            balance = await self._ledger(repo).credit(caller, amount)

        logger.info(f"Deposit by {caller}: amount {amount.handle}")
        return balance

    async def request_swap(self, caller: str, payment: int, tag: Optional[str] = None) -> int:
        """Pay for entropy and obtain a request id that authorizes one swap."""
        async with self._transaction("request_swap") as repo:
            return await self._requests(repo).create(caller, payment, tag)

    async def cancel_request(self, caller: str, request_id: int) -> None:
        """Give up a pending authorization."""
        async with self._transaction("cancel_request") as repo:
            await self._requests(repo).cancel(request_id, caller)

    async def swap(
        self,
        caller: str,
        request_id: int,
        raw: ExternalCiphertext,
        proof: str,
    ) -> SwapResult:
        """Convert part of the caller's confidential balance into reserve units.

        Raises:
            EntropyNotReady, InvalidRequest: authorization checks, nothing changed
            InvalidProof: bad ciphertext, nothing changed
            InsufficientLiquidity: reserve too small (see module docstring)
            ReserveTransferFailed: reserve refused the payout
        """
        async with self._transaction("swap") as repo:
            pending = await repo.get_authorization(request_id)
            await self._requests(repo).consume(request_id, caller)
            amount = self._ingest(raw, proof, caller)
            payout = self.compute_payout(amount)
            ledger = self._ledger(repo)

            if self.liquidity_check == LiquidityCheckMode.STRICT:
                await self._check_liquidity(payout)
                await ledger.debit(caller, amount)
            else:
                await ledger.debit(caller, amount)
                # consumed authorization and debit are now final, whatever follows
                await repo.session.commit()
                await self._check_liquidity(payout)

            # nothing leaves the reserve until the authorization is spent for good
            await repo.session.commit()
            if not await self.reserve.transfer(caller, payout):
                if self.liquidity_check == LiquidityCheckMode.STRICT:
                    await self._reverse_swap(repo, caller, amount, pending)
                raise ReserveTransferFailed(caller, payout)

            await repo.record_event(
                EventKind.SWAP_COMPLETED,
                caller,
                request_id=request_id,
                amount_handle=amount.handle,
                payout=payout,
            )

        logger.info(
            f"Swap completed: user={caller} request_id={request_id} "
            f"amount={amount.handle} payout={payout}"
        )
        return SwapResult(
            account=caller,
            request_id=request_id,
            amount_handle=amount.handle,
            payout=payout,
        )

    async def _reverse_swap(
        self,
        repo: LedgerRepository,
        caller: str,
        amount: ConfidentialAmount,
        authorization: SwapAuthorization,
    ) -> None:
        """Undo a committed debit and consumption after the reserve refused the payout."""
        await self._ledger(repo).credit(caller, amount)
        await repo.add_authorization(
            request_id=authorization.request_id,
            requester=authorization.requester,
            tag=authorization.tag,
            fee_paid=authorization.fee_paid,
            created_at=authorization.created_at,
        )
        await repo.session.commit()
        logger.warning(
            f"Reserve refused payout to {caller}; request {authorization.request_id} restored"
        )

    async def _check_liquidity(self, payout: int) -> None:
        available = await self.reserve.balance_of(self.contract_address)
        if available < payout:
            logger.warning(f"Insufficient liquidity: reserve={available} payout={payout}")
            raise InsufficientLiquidity(available, payout)

    # Read operations
    async def get_encrypted_balance(self, account: str) -> Optional[ConfidentialAmount]:
        async with self._read() as repo:
            return await self._ledger(repo).read(account)

    async def get_requester(self, request_id: int) -> Optional[str]:
        async with self._read() as repo:
            return await self._requests(repo).get_requester(request_id)

    async def get_pending_requests(self, account: str) -> list[SwapAuthorization]:
        async with self._read() as repo:
            return await self._requests(repo).pending_requests(account)

    async def get_request_count(self) -> int:
        async with self._read() as repo:
            return await self._requests(repo).request_count()

    async def get_oracle_address(self) -> str:
        async with self._read() as repo:
            return await repo.get_config(ConfigKey.ORACLE_ADDRESS) or self.oracle.address

    async def get_reserve_address(self) -> str:
        async with self._read() as repo:
            return await repo.get_config(ConfigKey.RESERVE_ADDRESS) or self.reserve.address

    async def get_events(
        self,
        kind: Optional[EventKind] = None,
        account: Optional[str] = None,
        limit: int = 50,
    ) -> list[Event]:
        async with self._read() as repo:
            return await repo.get_events(kind=kind, account=account, limit=limit)
