"""In-memory oracle and reserve used for dry runs and tests.

Both are deterministic: request ids count up from 1, and nothing is fulfilled until
``fulfill`` is called.
"""

import logging
from collections import defaultdict

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient

logger = logging.getLogger(__name__)


class DryRunEntropyOracle(EntropyOracleClient):
    """Simulated entropy oracle with manual fulfillment."""

    def __init__(self, address: str, fee: int = 0, first_request_id: int = 1):
        self._address = address
        self.fee = fee
        self._next_request_id = first_request_id
        self.requests: dict[int, dict] = {}
        self.collected_fees = 0

    @property
    def name(self) -> str:
        return "dryrun"

    @property
    def address(self) -> str:
        return self._address

    async def get_fee(self) -> int:
        return self.fee

    async def request_entropy(self, payment: int, tag: str) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        self.requests[request_id] = {"tag": tag, "payment": payment, "fulfilled": False}
        self.collected_fees += payment
        logger.debug(f"[dryrun oracle] request {request_id} submitted")
        return request_id

    async def is_request_fulfilled(self, request_id: int) -> bool:
        request = self.requests.get(request_id)
        return bool(request and request["fulfilled"])

    def fulfill(self, request_id: int) -> None:
        """Mark a request as fulfilled, as the real oracle's callback would."""
        if request_id not in self.requests:
            raise KeyError(f"Unknown request {request_id}")
        self.requests[request_id]["fulfilled"] = True
        logger.info(f"[dryrun oracle] request {request_id} fulfilled")


class DryRunReserve(ReserveAssetClient):
    """Simulated reserve token with public balances held in memory."""

    def __init__(self, address: str, holder: str, initial_balance: int = 0):
        self._address = address
        self.holder = holder
        self.balances: dict[str, int] = defaultdict(int)
        if initial_balance:
            self.balances[holder] = initial_balance

    @property
    def name(self) -> str:
        return "dryrun"

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    async def transfer(self, to: str, amount: int) -> bool:
        if amount < 0 or self.balances.get(self.holder, 0) < amount:
            return False
        self.balances[self.holder] -= amount
        self.balances[to] += amount
        return True

    def mint(self, holder: str, amount: int) -> None:
        """Credit public balance out of thin air (liquidity top-ups in tests)."""
        self.balances[holder] += amount
