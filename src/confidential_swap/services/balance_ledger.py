"""Confidential balance ledger.

Balances are Paillier ciphertexts. Credit and debit combine them homomorphically and
never look at magnitudes, so there is no overflow check on credit and no solvency check
on debit. A debit larger than the balance wraps modulo 2**64.
"""

import json
import logging
from typing import Optional

from confidential_swap.fhe.algebra import CiphertextAlgebra, ConfidentialAmount
from confidential_swap.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


class ConfidentialBalanceLedger:
    """Owns the account -> ConfidentialAmount mapping."""

    def __init__(self, repo: LedgerRepository, algebra: CiphertextAlgebra, principal: str):
        """
        Args:
            repo: Repository bound to the current transaction
            algebra: Ciphertext algebra
            principal: The ledger's own identity (the contract address)
        """
        self.repo = repo
        self.algebra = algebra
        self.principal = principal

    async def read(self, account: str) -> Optional[ConfidentialAmount]:
        """Return the stored ciphertext verbatim, or None if never credited."""
        row = await self.repo.get_balance(account)
        if row is None:
            return None
        return ConfidentialAmount(
            ciphertext=int(row.ciphertext, 16),
            readers=frozenset(json.loads(row.readers)),
        )

    async def credit(self, account: str, delta: ConfidentialAmount) -> ConfidentialAmount:
        """Add ``delta`` to the account's balance."""
        current = await self._current(account)
        updated = self.algebra.add(self.principal, current, delta)
        return await self._store(account, updated, "credit")

    async def debit(self, account: str, delta: ConfidentialAmount) -> ConfidentialAmount:
        """Subtract ``delta`` from the account's balance."""
        current = await self._current(account)
        updated = self.algebra.sub(self.principal, current, delta)
        return await self._store(account, updated, "debit")

    async def _current(self, account: str) -> ConfidentialAmount:
        balance = await self.read(account)
        if balance is None:
            return self.algebra.trivial_encrypt(0, self.principal)
        return balance

    async def _store(self, account: str, amount: ConfidentialAmount, operation: str) -> ConfidentialAmount:
        # ledger keeps access for later operations, the owner gets it for decryption
        amount = self.algebra.allow(amount, self.principal, account)
        await self.repo.store_balance(account, format(amount.ciphertext, "x"), list(amount.readers))
        logger.info(f"Ledger {operation} for {account}: balance now {amount.handle}")
        return amount
