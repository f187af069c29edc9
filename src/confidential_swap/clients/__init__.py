"""Clients for the entropy oracle and the reserve asset."""

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient
from confidential_swap.clients.dry_run import DryRunEntropyOracle, DryRunReserve
from confidential_swap.clients.factory import create_oracle_client, create_reserve_client

__all__ = [
    "EntropyOracleClient",
    "ReserveAssetClient",
    "DryRunEntropyOracle",
    "DryRunReserve",
    "create_oracle_client",
    "create_reserve_client",
]
