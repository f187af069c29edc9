"""Swap service components."""

from confidential_swap.services.balance_ledger import ConfidentialBalanceLedger
from confidential_swap.services.factory import create_algebra, create_orchestrator
from confidential_swap.services.orchestrator import PLACEHOLDER_PAYOUT, SwapOrchestrator, SwapResult
from confidential_swap.services.requests import RequestLifecycleManager

__all__ = [
    "ConfidentialBalanceLedger",
    "RequestLifecycleManager",
    "SwapOrchestrator",
    "SwapResult",
    "PLACEHOLDER_PAYOUT",
    "create_algebra",
    "create_orchestrator",
]
