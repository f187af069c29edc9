"""Application configuration using pydantic-settings.

Addresses, oracle/reserve endpoints and the fixed exchange rate are read once at
startup. The exchange rate and collaborator addresses are persisted on first
initialization and never change afterwards.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LiquidityCheckMode(str, Enum):
    """Ordering of the reserve liquidity check relative to the ledger debit."""

    REFERENCE = "reference"  # debit committed before the check (known defect)
    STRICT = "strict"  # check before debit, whole swap rolls back on failure


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/confidential_swap.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    admin_token: str = Field(default="", description="Admin API token for protected endpoints")

    # ======================
    # Contract identity
    # ======================
    contract_address: str = Field(
        default="0xc0nf1d3n71a15wap000000000000000000000001",
        description="Principal that owns the ledger and the reserve holdings",
    )
    exchange_rate: int = Field(
        default=1, ge=1, description="Reserve units per confidential unit (fixed at construction)"
    )

    # ======================
    # Entropy oracle
    # ======================
    oracle_provider: str = Field(default="dryrun", description="Oracle client: dryrun or http")
    oracle_address: str = Field(
        default="0x0rac1e0000000000000000000000000000000001",
        description="Address of the entropy oracle",
    )
    oracle_url: str = Field(default="", description="Base URL of the oracle HTTP gateway")
    oracle_fee: int = Field(default=1000, ge=0, description="Fee quoted by the dry-run oracle")

    # ======================
    # Reserve asset
    # ======================
    reserve_provider: str = Field(default="dryrun", description="Reserve client: dryrun or http")
    reserve_address: str = Field(
        default="0x7e5e7ve000000000000000000000000000000001",
        description="Address of the public reserve token",
    )
    reserve_url: str = Field(default="", description="Base URL of the reserve token gateway")
    reserve_asset: str = Field(default="USDC", description="Reserve asset symbol")
    reserve_seed_balance: int = Field(
        default=0, ge=0, description="Initial contract balance for the dry-run reserve"
    )

    # ======================
    # Swap behaviour
    # ======================
    liquidity_check: LiquidityCheckMode = Field(
        default=LiquidityCheckMode.REFERENCE,
        description="reference = debit before liquidity check, strict = check first",
    )
    authorization_ttl_seconds: Optional[int] = Field(
        default=None, ge=1, description="Expire pending authorizations (None = never)"
    )
    transaction_lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for the transaction lock"
    )

    # ======================
    # Encryption
    # ======================
    fhe_key_file: str = Field(
        default="./data/paillier_key.json", description="Paillier key pair location"
    )
    fhe_key_bits: int = Field(default=2048, description="Paillier modulus size for new keys")
    input_proof_secret: str = Field(
        default="dev-input-verifier-secret",
        description="HMAC secret shared with the input verifier",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "contract_address": self.contract_address,
            "exchange_rate": self.exchange_rate,
            "oracle": {
                "provider": self.oracle_provider,
                "address": self.oracle_address,
                "url": self.oracle_url or "(not set)",
            },
            "reserve": {
                "provider": self.reserve_provider,
                "address": self.reserve_address,
                "asset": self.reserve_asset,
                "url": self.reserve_url or "(not set)",
            },
            "swap": {
                "liquidity_check": self.liquidity_check.value,
                "authorization_ttl_seconds": self.authorization_ttl_seconds,
            },
            "admin_token": "***" if self.admin_token else "(not set)",
            "input_proof_secret": "***" if self.input_proof_secret else "(not set)",
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
