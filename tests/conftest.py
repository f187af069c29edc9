"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["ADMIN_TOKEN"] = ""

from confidential_swap.clients.dry_run import DryRunEntropyOracle, DryRunReserve
from confidential_swap.config import LiquidityCheckMode
from confidential_swap.fhe import CiphertextAlgebra, InputVerifier, KeyRing, encrypt_input
from confidential_swap.ledger.models import Base
from confidential_swap.ledger.repository import LedgerRepository
from confidential_swap.services.orchestrator import SwapOrchestrator

CONTRACT = "0xc0ffee0000000000000000000000000000000001"
ORACLE = "0x0rac1e0000000000000000000000000000000001"
RESERVE = "0x7e5e7ve000000000000000000000000000000001"
ALICE = "0xa11ce00000000000000000000000000000000001"
BOB = "0xb0b0000000000000000000000000000000000002"
ORACLE_FEE = 1000
RESERVE_LIQUIDITY = 10_000


@pytest.fixture(scope="session")
def keyring() -> KeyRing:
    """Small Paillier key shared by the whole session (keygen is slow)."""
    return KeyRing.generate(bits=512)


@pytest.fixture
def verifier() -> InputVerifier:
    return InputVerifier("test-input-secret", CONTRACT)


@pytest.fixture
def algebra(keyring: KeyRing, verifier: InputVerifier) -> CiphertextAlgebra:
    return CiphertextAlgebra(keyring.public_key, verifier, private_key=keyring.private_key)


@pytest.fixture
def encrypt(keyring: KeyRing, verifier: InputVerifier):
    """Client-side encryption: encrypt(account, value) -> (raw, proof)."""

    def _encrypt(account: str, value: int):
        return encrypt_input(keyring.public_key, value, account, verifier)

    return _encrypt


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def ledger_repo(db_session: AsyncSession) -> LedgerRepository:
    """Create ledger repository for testing."""
    return LedgerRepository(db_session)


@pytest.fixture
def oracle() -> DryRunEntropyOracle:
    return DryRunEntropyOracle(address=ORACLE, fee=ORACLE_FEE)


@pytest.fixture
def reserve() -> DryRunReserve:
    return DryRunReserve(address=RESERVE, holder=CONTRACT, initial_balance=RESERVE_LIQUIDITY)


@pytest.fixture
def make_orchestrator(session_factory, algebra, oracle, reserve):
    """Build (uninitialized) orchestrators sharing one database."""

    def _make(**overrides) -> SwapOrchestrator:
        kwargs = dict(
            session_factory=session_factory,
            algebra=algebra,
            oracle=oracle,
            reserve=reserve,
            contract_address=CONTRACT,
        )
        kwargs.update(overrides)
        return SwapOrchestrator(**kwargs)

    return _make


@pytest_asyncio.fixture
async def orchestrator(make_orchestrator) -> SwapOrchestrator:
    """Orchestrator with reference (debit-before-liquidity) ordering."""
    orchestrator = make_orchestrator()
    await orchestrator.initialize()
    return orchestrator


@pytest_asyncio.fixture
async def strict_orchestrator(make_orchestrator) -> SwapOrchestrator:
    """Orchestrator that checks liquidity before debiting."""
    orchestrator = make_orchestrator(liquidity_check=LiquidityCheckMode.STRICT)
    await orchestrator.initialize()
    return orchestrator
