#!/usr/bin/env python3
"""Decrypt an account's confidential balance (needs the private key file)."""

import asyncio
import sys

from confidential_swap.config import get_settings
from confidential_swap.fhe import KeyRing
from confidential_swap.ledger.database import close_db, get_session_factory, transaction
from confidential_swap.ledger.repository import LedgerRepository
from confidential_swap.services import ConfidentialBalanceLedger, create_algebra


async def decrypt_balance(account: str) -> None:
    settings = get_settings()
    keyring = KeyRing.load(settings.fhe_key_file)
    if not keyring.can_decrypt:
        print(f"Key file {settings.fhe_key_file} has no private key")
        return

    algebra = create_algebra(keyring, settings)
    async with transaction(get_session_factory()) as session:
        ledger = ConfidentialBalanceLedger(
            LedgerRepository(session), algebra, settings.contract_address
        )
        balance = await ledger.read(account)

    await close_db()

    if balance is None:
        print(f"{account} has no balance yet")
        return

    print(f"Handle:  {balance.handle}")
    print(f"Balance: {algebra.decrypt(balance, account)}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python decrypt_balance.py <account>")
        sys.exit(1)

    asyncio.run(decrypt_balance(sys.argv[1]))
