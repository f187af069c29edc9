"""Deposit, request and swap endpoints."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from confidential_swap.config import get_settings
from confidential_swap.fhe.inputs import ExternalCiphertext
from confidential_swap.ledger.models import EventKind
from confidential_swap.services.orchestrator import SwapOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> SwapOrchestrator:
    """Orchestrator created by the application lifespan."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return orchestrator


# Request/Response models
class EncryptedInput(BaseModel):
    """Client ciphertext plus its input proof."""

    account: str = Field(..., min_length=1, description="Caller identity")
    ciphertext: str = Field(..., description="Paillier ciphertext, hex")
    proof: str = Field(..., description="Input verifier attestation, hex")


class DepositResponse(BaseModel):
    account: str
    balance_handle: str


class BalanceResponse(BaseModel):
    account: str
    handle: Optional[str] = None
    ciphertext: Optional[str] = None
    readers: list[str] = Field(default_factory=list)


class CreateRequest(BaseModel):
    """Request for a swap authorization."""

    account: str = Field(..., min_length=1)
    payment: int = Field(..., ge=0, description="Native value forwarded to the oracle")
    tag: Optional[str] = Field(None, pattern=r"^0x[0-9a-fA-F]{64}$")


class AuthorizationResponse(BaseModel):
    request_id: int
    requester: str


class PendingRequestResponse(BaseModel):
    request_id: int
    requester: str
    fee_paid: int
    created_at: datetime


class SwapExecute(EncryptedInput):
    request_id: int = Field(..., ge=0)


class SwapResponse(BaseModel):
    account: str
    request_id: int
    amount_handle: str
    payout: int


class ConfigResponse(BaseModel):
    contract_address: str
    oracle_address: str
    reserve_address: str
    reserve_asset: str
    exchange_rate: int
    request_count: int
    liquidity_check: str


class EventResponse(BaseModel):
    id: int
    kind: str
    account: str
    request_id: Optional[int] = None
    amount_handle: Optional[str] = None
    payout: Optional[int] = None
    created_at: Optional[datetime] = None


@router.post("/deposits", response_model=DepositResponse)
async def deposit(
    body: EncryptedInput,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> DepositResponse:
    """Credit an encrypted amount to the caller's confidential balance."""
    raw = ExternalCiphertext.from_wire(body.ciphertext)
    balance = await orchestrator.deposit(body.account, raw, body.proof)
    return DepositResponse(account=body.account, balance_handle=balance.handle)


@router.get("/balances/{account}", response_model=BalanceResponse)
async def get_balance(
    account: str,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> BalanceResponse:
    """Get the opaque encrypted balance of an account."""
    balance = await orchestrator.get_encrypted_balance(account)
    if balance is None:
        return BalanceResponse(account=account)
    return BalanceResponse(
        account=account,
        handle=balance.handle,
        ciphertext=hex(balance.ciphertext),
        readers=sorted(balance.readers),
    )


@router.post("/requests", response_model=AuthorizationResponse)
async def create_request(
    body: CreateRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> AuthorizationResponse:
    """Pay the oracle fee and obtain a single-use swap authorization."""
    request_id = await orchestrator.request_swap(body.account, body.payment, body.tag)
    return AuthorizationResponse(request_id=request_id, requester=body.account)


@router.get("/requests", response_model=list[PendingRequestResponse])
async def list_requests(
    account: str = Query(..., min_length=1),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> list[PendingRequestResponse]:
    """Live authorizations held by an account."""
    pending = await orchestrator.get_pending_requests(account)
    return [
        PendingRequestResponse(
            request_id=a.request_id,
            requester=a.requester,
            fee_paid=a.fee_paid,
            created_at=a.created_at,
        )
        for a in pending
    ]


@router.get("/requests/{request_id}", response_model=AuthorizationResponse)
async def get_request(
    request_id: int,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> AuthorizationResponse:
    """Get the live authorization for a request id."""
    requester = await orchestrator.get_requester(request_id)
    if requester is None:
        raise HTTPException(status_code=404, detail=f"No live authorization for {request_id}")
    return AuthorizationResponse(request_id=request_id, requester=requester)


@router.delete("/requests/{request_id}")
async def cancel_request(
    request_id: int,
    account: str = Query(..., min_length=1),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Cancel a pending authorization (the oracle fee is not refunded)."""
    await orchestrator.cancel_request(account, request_id)
    return {"success": True, "request_id": request_id}


@router.post("/swaps", response_model=SwapResponse)
async def swap(
    body: SwapExecute,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> SwapResponse:
    """Swap part of the confidential balance into the reserve asset."""
    raw = ExternalCiphertext.from_wire(body.ciphertext)
    result = await orchestrator.swap(body.account, body.request_id, raw, body.proof)
    return SwapResponse(
        account=result.account,
        request_id=result.request_id,
        amount_handle=result.amount_handle,
        payout=result.payout,
    )


@router.get("/config", response_model=ConfigResponse)
async def get_config(
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> ConfigResponse:
    """Construction-time parameters and the request counter."""
    return ConfigResponse(
        contract_address=orchestrator.contract_address,
        oracle_address=await orchestrator.get_oracle_address(),
        reserve_address=await orchestrator.get_reserve_address(),
        reserve_asset=get_settings().reserve_asset,
        exchange_rate=orchestrator.exchange_rate,
        request_count=await orchestrator.get_request_count(),
        liquidity_check=orchestrator.liquidity_check.value,
    )


@router.get("/events", response_model=list[EventResponse])
async def get_events(
    kind: Optional[EventKind] = None,
    account: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> list[EventResponse]:
    """Emitted events, newest first."""
    events = await orchestrator.get_events(kind=kind, account=account, limit=limit)
    return [
        EventResponse(
            id=e.id,
            kind=e.kind,
            account=e.account,
            request_id=e.request_id,
            amount_handle=e.amount_handle,
            payout=e.payout,
            created_at=e.created_at,
        )
        for e in events
    ]
