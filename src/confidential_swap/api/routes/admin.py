"""Admin API endpoints (token-protected)."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException

from confidential_swap.api.routes.swaps import get_orchestrator
from confidential_swap.clients.dry_run import DryRunEntropyOracle, DryRunReserve
from confidential_swap.config import get_settings
from confidential_swap.services.orchestrator import SwapOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify admin token from header.

    If ADMIN_TOKEN is not set, allows access (dev mode).
    """
    settings = get_settings()

    if not settings.admin_token:
        return True

    if x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return True


@router.post("/oracle/{request_id}/fulfill")
async def fulfill_request(
    request_id: int,
    _: bool = Depends(require_admin_token),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Fulfill a request on the dry-run oracle."""
    if not isinstance(orchestrator.oracle, DryRunEntropyOracle):
        raise HTTPException(status_code=400, detail="Oracle is not a dry-run oracle")

    try:
        orchestrator.oracle.fulfill(request_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown request {request_id}")

    logger.info(f"Admin fulfilled dry-run request {request_id}")
    return {"success": True, "request_id": request_id}


@router.post("/reserve/mint")
async def mint_reserve(
    amount: int,
    _: bool = Depends(require_admin_token),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Top up the contract's dry-run reserve holdings."""
    if not isinstance(orchestrator.reserve, DryRunReserve):
        raise HTTPException(status_code=400, detail="Reserve is not a dry-run reserve")
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be positive")

    orchestrator.reserve.mint(orchestrator.contract_address, amount)
    balance = await orchestrator.reserve.balance_of(orchestrator.contract_address)
    return {"success": True, "reserve_balance": balance}
