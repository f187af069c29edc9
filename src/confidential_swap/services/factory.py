"""Wire a SwapOrchestrator from settings."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient
from confidential_swap.clients.factory import create_oracle_client, create_reserve_client
from confidential_swap.config import Settings, get_settings
from confidential_swap.fhe.algebra import CiphertextAlgebra
from confidential_swap.fhe.inputs import InputVerifier
from confidential_swap.fhe.keys import KeyRing
from confidential_swap.ledger.database import get_session_factory
from confidential_swap.services.orchestrator import SwapOrchestrator
from confidential_swap.utils.locks import TransactionLock

logger = logging.getLogger(__name__)


def create_algebra(keyring: KeyRing, settings: Optional[Settings] = None) -> CiphertextAlgebra:
    """Create the ciphertext algebra bound to the contract's input verifier."""
    settings = settings or get_settings()
    verifier = InputVerifier(settings.input_proof_secret, settings.contract_address)
    return CiphertextAlgebra(keyring.public_key, verifier, private_key=keyring.private_key)


def create_orchestrator(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    oracle: Optional[EntropyOracleClient] = None,
    reserve: Optional[ReserveAssetClient] = None,
    keyring: Optional[KeyRing] = None,
) -> SwapOrchestrator:
    """Create an orchestrator; anything not passed in is built from settings."""
    settings = settings or get_settings()
    keyring = keyring or KeyRing.load_or_create(settings.fhe_key_file, settings.fhe_key_bits)
    oracle = oracle or create_oracle_client(settings)
    reserve = reserve or create_reserve_client(settings)

    logger.info(f"Using {oracle.name} oracle and {reserve.name} reserve")
    return SwapOrchestrator(
        session_factory=session_factory or get_session_factory(),
        algebra=create_algebra(keyring, settings),
        oracle=oracle,
        reserve=reserve,
        contract_address=settings.contract_address,
        exchange_rate=settings.exchange_rate,
        liquidity_check=settings.liquidity_check,
        authorization_ttl_seconds=settings.authorization_ttl_seconds,
        lock=TransactionLock(timeout=settings.transaction_lock_timeout),
    )
