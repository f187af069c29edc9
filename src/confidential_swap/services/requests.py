"""Entropy request lifecycle.

A request id moves Unissued -> Pending -> Fulfilled-Unconsumed -> Consumed. Pending
and Fulfilled are oracle-side facts; this manager only owns the authorization record
tying the id to its requester, and deletes it exactly once.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from confidential_swap.clients.base import EntropyOracleClient
from confidential_swap.errors import EntropyNotReady, InsufficientFee, InvalidRequest
from confidential_swap.ledger.models import ConfigKey, EventKind, SwapAuthorization
from confidential_swap.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite does not keep tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RequestLifecycleManager:
    """Issues and consumes single-use swap authorizations."""

    def __init__(
        self,
        repo: LedgerRepository,
        oracle: EntropyOracleClient,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.oracle = oracle
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def create(self, requester: str, payment: int, tag: Optional[str] = None) -> int:
        """Pay the oracle for entropy and authorize ``requester`` to swap once.

        Raises:
            InsufficientFee: If ``payment`` is below the oracle's current fee
            InvalidRequest: If the oracle reuses a request id that is still live
        """
        fee = await self.oracle.get_fee()
        if payment < fee:
            raise InsufficientFee(payment, fee)

        tag = tag or self._new_tag(requester)
        request_id = await self.oracle.request_entropy(payment, tag)

        if await self.repo.get_authorization(request_id) is not None:
            raise InvalidRequest(request_id, "oracle returned an id that is already authorized")

        await self.repo.add_authorization(
            request_id=request_id,
            requester=requester,
            tag=tag,
            fee_paid=payment,
            created_at=self._clock(),
        )
        count = await self.repo.increment_counter(ConfigKey.REQUEST_COUNTER)
        await self.repo.record_event(EventKind.SWAP_REQUESTED, requester, request_id=request_id)

        logger.info(f"Swap requested: user={requester} request_id={request_id} (#{count})")
        return request_id

    async def consume(self, request_id: int, requester: str) -> bool:
        """Spend the authorization for ``request_id``.

        Runs inside the caller's transaction, so the deletion commits or rolls back
        together with whatever the caller does next.

        Raises:
            EntropyNotReady: Oracle has not fulfilled the request
            InvalidRequest: No live authorization for this id and requester
        """
        if not await self.oracle.is_request_fulfilled(request_id):
            raise EntropyNotReady(request_id)

        authorization = await self._live_authorization(request_id, requester)
        await self.repo.delete_authorization(authorization)
        logger.info(f"Authorization {request_id} consumed by {requester}")
        return True

    async def cancel(self, request_id: int, requester: str) -> None:
        """Drop a live authorization without swapping. The oracle fee is not refunded."""
        authorization = await self._live_authorization(request_id, requester, check_expiry=False)
        await self.repo.delete_authorization(authorization)
        logger.info(f"Authorization {request_id} cancelled by {requester}")

    async def get_requester(self, request_id: int) -> Optional[str]:
        """Requester holding the live authorization for ``request_id``, if any."""
        authorization = await self.repo.get_authorization(request_id)
        if authorization is None or self._is_expired(authorization):
            return None
        return authorization.requester

    async def pending_requests(self, requester: str) -> list[SwapAuthorization]:
        """Live authorizations held by ``requester``, oldest request first."""
        authorizations = await self.repo.get_requester_authorizations(requester)
        return [a for a in authorizations if not self._is_expired(a)]

    async def request_count(self) -> int:
        return int(await self.repo.get_config(ConfigKey.REQUEST_COUNTER) or 0)

    async def _live_authorization(
        self, request_id: int, requester: str, check_expiry: bool = True
    ) -> SwapAuthorization:
        authorization = await self.repo.get_authorization(request_id)
        if authorization is None or authorization.requester != requester:
            raise InvalidRequest(request_id)
        if check_expiry and self._is_expired(authorization):
            raise InvalidRequest(request_id, "authorization expired")
        return authorization

    def _is_expired(self, authorization: SwapAuthorization) -> bool:
        if self.ttl_seconds is None:
            return False
        created_at = authorization.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
        return self._clock() - created_at > timedelta(seconds=self.ttl_seconds)

    @staticmethod
    def _new_tag(requester: str) -> str:
        seed = f"{requester}:{secrets.token_hex(16)}"
        return "0x" + hashlib.sha256(seed.encode()).hexdigest()
