"""Factory for creating oracle and reserve clients from settings.

Creates HTTP clients when a gateway URL is configured, otherwise falls back to the
in-memory dry-run doubles.
"""

import logging
from typing import Optional

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient
from confidential_swap.clients.dry_run import DryRunEntropyOracle, DryRunReserve
from confidential_swap.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_oracle_client(settings: Optional[Settings] = None) -> EntropyOracleClient:
    """Create the entropy oracle client."""
    settings = settings or get_settings()

    if settings.oracle_provider == "http":
        if settings.oracle_url:
            from confidential_swap.clients.http import HttpEntropyOracle

            return HttpEntropyOracle(
                base_url=settings.oracle_url,
                address=settings.oracle_address,
                callback=settings.contract_address,
            )
        logger.warning("ORACLE_PROVIDER=http but ORACLE_URL not set - using dry-run oracle")

    return DryRunEntropyOracle(address=settings.oracle_address, fee=settings.oracle_fee)


def create_reserve_client(settings: Optional[Settings] = None) -> ReserveAssetClient:
    """Create the reserve asset client."""
    settings = settings or get_settings()

    if settings.reserve_provider == "http":
        if settings.reserve_url:
            from confidential_swap.clients.http import HttpReserveAsset

            return HttpReserveAsset(
                base_url=settings.reserve_url,
                address=settings.reserve_address,
                holder=settings.contract_address,
            )
        logger.warning("RESERVE_PROVIDER=http but RESERVE_URL not set - using dry-run reserve")

    return DryRunReserve(
        address=settings.reserve_address,
        holder=settings.contract_address,
        initial_balance=settings.reserve_seed_balance,
    )
