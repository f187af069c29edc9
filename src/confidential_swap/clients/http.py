"""HTTP gateways to a remote entropy oracle and reserve token."""

import logging
from typing import Any, Optional

import httpx

from confidential_swap.clients.base import EntropyOracleClient, ReserveAssetClient
from confidential_swap.errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)


class _GatewayClient:
    """Shared request handling for JSON gateways."""

    service = "gateway"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        allow_404: bool = False,
        **kwargs: Any,
    ) -> Optional[dict]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{self.service} {method} {path} failed: {e}")
            raise ExternalServiceUnavailable(f"{self.service} unreachable: {e}")

        if allow_404 and response.status_code == 404:
            return None
        if response.status_code not in (200, 201):
            logger.warning(f"{self.service} {method} {path} returned {response.status_code}")
            raise ExternalServiceUnavailable(
                f"{self.service} returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError:
            raise ExternalServiceUnavailable(f"{self.service} returned invalid JSON")

        if not isinstance(data, dict):
            raise ExternalServiceUnavailable(f"{self.service} returned a non-object body")
        return data

    def _field(self, data: Optional[dict], key: str) -> Any:
        if not data or key not in data:
            raise ExternalServiceUnavailable(f"{self.service} response missing '{key}'")
        return data[key]

    def _int_field(self, data: Optional[dict], key: str) -> int:
        value = self._field(data, key)
        # bool is an int subclass and float would truncate silently
        if isinstance(value, (bool, float)):
            raise ExternalServiceUnavailable(
                f"{self.service} returned non-integer '{key}': {value!r}"
            )
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ExternalServiceUnavailable(
                f"{self.service} returned non-integer '{key}': {value!r}"
            )

    def _bool_field(self, data: Optional[dict], key: str) -> bool:
        value = self._field(data, key)
        if not isinstance(value, bool):
            raise ExternalServiceUnavailable(
                f"{self.service} returned non-boolean '{key}': {value!r}"
            )
        return value


class HttpEntropyOracle(_GatewayClient, EntropyOracleClient):
    """Entropy oracle reached through its HTTP gateway."""

    service = "oracle"

    def __init__(
        self,
        base_url: str,
        address: str,
        callback: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._address = address
        self.callback = callback

    @property
    def name(self) -> str:
        return "http"

    @property
    def address(self) -> str:
        return self._address

    async def get_fee(self) -> int:
        data = await self._request("GET", "/fee")
        return self._int_field(data, "fee")

    async def request_entropy(self, payment: int, tag: str) -> int:
        data = await self._request(
            "POST",
            "/requests",
            json={"payment": payment, "tag": tag, "callback": self.callback},
        )
        return self._int_field(data, "request_id")

    async def is_request_fulfilled(self, request_id: int) -> bool:
        data = await self._request("GET", f"/requests/{request_id}", allow_404=True)
        if data is None:
            return False
        if "fulfilled" not in data:
            return False
        return self._bool_field(data, "fulfilled")


class HttpReserveAsset(_GatewayClient, ReserveAssetClient):
    """Reserve token reached through its HTTP gateway."""

    service = "reserve"

    def __init__(
        self,
        base_url: str,
        address: str,
        holder: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._address = address
        self.holder = holder

    @property
    def name(self) -> str:
        return "http"

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, holder: str) -> int:
        data = await self._request("GET", f"/balances/{holder}")
        return self._int_field(data, "balance")

    async def transfer(self, to: str, amount: int) -> bool:
        data = await self._request(
            "POST",
            "/transfers",
            json={"from": self.holder, "to": to, "amount": amount},
        )
        return self._bool_field(data, "success")
