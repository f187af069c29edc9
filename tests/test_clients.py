"""Tests for the oracle and reserve clients."""

import json

import httpx
import pytest

from confidential_swap.clients.dry_run import DryRunEntropyOracle, DryRunReserve
from confidential_swap.clients.factory import create_oracle_client, create_reserve_client
from confidential_swap.clients.http import HttpEntropyOracle, HttpReserveAsset
from confidential_swap.config import Settings
from confidential_swap.errors import ExternalServiceUnavailable
from tests.conftest import ALICE, CONTRACT, ORACLE, RESERVE

ORACLE_URL = "http://oracle.test"
RESERVE_URL = "http://reserve.test"


def oracle_gateway(fulfilled: set[int], fee: int = 250) -> httpx.MockTransport:
    """Fake oracle gateway: ids count up from 7, fulfilled ids come from ``fulfilled``."""
    state = {"next_id": 7, "submitted": []}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == "/fee":
            return httpx.Response(200, json={"fee": fee})
        if request.method == "POST" and path == "/requests":
            state["submitted"].append(json.loads(request.content))
            request_id = state["next_id"]
            state["next_id"] += 1
            return httpx.Response(201, json={"request_id": request_id})
        if request.method == "GET" and path.startswith("/requests/"):
            request_id = int(path.rsplit("/", 1)[1])
            if request_id >= state["next_id"]:
                return httpx.Response(404, json={"detail": "unknown"})
            return httpx.Response(200, json={"fulfilled": request_id in fulfilled})
        return httpx.Response(405)

    transport = httpx.MockTransport(handler)
    transport.state = state
    return transport


class TestDryRunClients:
    """In-memory doubles."""

    @pytest.mark.asyncio
    async def test_oracle_ids_and_fulfillment(self):
        """Test oracle ids and fulfillment."""
        oracle = DryRunEntropyOracle(ORACLE, fee=10)

        first = await oracle.request_entropy(10, "0x01")
        second = await oracle.request_entropy(15, "0x02")

        assert (first, second) == (1, 2)
        assert oracle.collected_fees == 25
        assert not await oracle.is_request_fulfilled(first)

        oracle.fulfill(first)

        assert await oracle.is_request_fulfilled(first)
        assert not await oracle.is_request_fulfilled(second)
        assert not await oracle.is_request_fulfilled(99)

    def test_fulfill_unknown_request(self):
        """Test fulfill unknown request."""
        oracle = DryRunEntropyOracle(ORACLE)

        with pytest.raises(KeyError):
            oracle.fulfill(1)

    @pytest.mark.asyncio
    async def test_reserve_transfer(self):
        """Test reserve transfer."""
        reserve = DryRunReserve(RESERVE, holder=CONTRACT, initial_balance=100)

        assert await reserve.transfer(ALICE, 60) is True
        assert await reserve.balance_of(CONTRACT) == 40
        assert await reserve.balance_of(ALICE) == 60

    @pytest.mark.asyncio
    async def test_reserve_refuses_overdraft(self):
        """Test reserve refuses overdraft."""
        reserve = DryRunReserve(RESERVE, holder=CONTRACT, initial_balance=10)

        assert await reserve.transfer(ALICE, 11) is False
        assert await reserve.transfer(ALICE, -1) is False
        assert await reserve.balance_of(CONTRACT) == 10


class TestHttpEntropyOracle:
    """Oracle gateway client."""

    def make_client(self, transport: httpx.MockTransport) -> HttpEntropyOracle:
        return HttpEntropyOracle(ORACLE_URL, address=ORACLE, callback=CONTRACT, transport=transport)

    @pytest.mark.asyncio
    async def test_fee(self):
        """Test fee."""
        client = self.make_client(oracle_gateway(set(), fee=250))

        assert await client.get_fee() == 250

    @pytest.mark.asyncio
    async def test_request_entropy_posts_tag_and_callback(self):
        """Test request entropy posts tag and callback."""
        transport = oracle_gateway(set())
        client = self.make_client(transport)

        request_id = await client.request_entropy(250, "0xabc")

        assert request_id == 7
        assert transport.state["submitted"] == [
            {"payment": 250, "tag": "0xabc", "callback": CONTRACT}
        ]

    @pytest.mark.asyncio
    async def test_fulfillment_status(self):
        """Test fulfillment status."""
        transport = oracle_gateway({7})
        client = self.make_client(transport)
        await client.request_entropy(250, "0x01")
        await client.request_entropy(250, "0x02")

        assert await client.is_request_fulfilled(7) is True
        assert await client.is_request_fulfilled(8) is False

    @pytest.mark.asyncio
    async def test_unknown_request_is_not_fulfilled(self):
        """Test unknown request is not fulfilled."""
        client = self.make_client(oracle_gateway(set()))

        assert await client.is_request_fulfilled(42) is False

    @pytest.mark.asyncio
    async def test_server_error(self):
        """Test server error."""
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        client = self.make_client(transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.get_fee()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test connection error."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = self.make_client(httpx.MockTransport(handler))

        with pytest.raises(ExternalServiceUnavailable, match="unreachable"):
            await client.is_request_fulfilled(1)

    @pytest.mark.asyncio
    async def test_missing_field(self):
        """Test missing field."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        client = self.make_client(transport)

        with pytest.raises(ExternalServiceUnavailable, match="fee"):
            await client.get_fee()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"fee": "abc"}, {"fee": None}, {"fee": 12.5}, {"fee": True}, [1]])
    async def test_malformed_fee(self, body):
        """Wrongly shaped fee responses are reported as an unavailable oracle."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        client = self.make_client(transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.get_fee()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[1], {"fulfilled": "false"}, {"fulfilled": 1}])
    async def test_malformed_fulfillment_status(self, body):
        """A fulfillment status that is not a JSON boolean is rejected."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        client = self.make_client(transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.is_request_fulfilled(7)

    @pytest.mark.asyncio
    async def test_malformed_request_id(self):
        """A non-numeric request id from the gateway is rejected."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(201, json={"request_id": "seven"})
        )
        client = self.make_client(transport)

        with pytest.raises(ExternalServiceUnavailable, match="request_id"):
            await client.request_entropy(250, "0x01")


class TestHttpReserveAsset:
    """Reserve token gateway client."""

    @pytest.mark.asyncio
    async def test_balance_and_transfer(self):
        """Test balance and transfer."""
        transfers = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and request.url.path == f"/balances/{CONTRACT}":
                return httpx.Response(200, json={"balance": 5000})
            if request.method == "POST" and request.url.path == "/transfers":
                transfers.append(json.loads(request.content))
                return httpx.Response(200, json={"success": True})
            return httpx.Response(404)

        client = HttpReserveAsset(
            RESERVE_URL, address=RESERVE, holder=CONTRACT, transport=httpx.MockTransport(handler)
        )

        assert await client.balance_of(CONTRACT) == 5000
        assert await client.transfer(ALICE, 100) is True
        assert transfers == [{"from": CONTRACT, "to": ALICE, "amount": 100}]

    @pytest.mark.asyncio
    async def test_rejected_transfer(self):
        """Test rejected transfer."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"success": False}))
        client = HttpReserveAsset(RESERVE_URL, address=RESERVE, holder=CONTRACT, transport=transport)

        assert await client.transfer(ALICE, 100) is False

    @pytest.mark.asyncio
    async def test_unknown_holder_is_an_error(self):
        """Test unknown holder is an error."""
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        client = HttpReserveAsset(RESERVE_URL, address=RESERVE, holder=CONTRACT, transport=transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.balance_of(ALICE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"balance": "lots"}, {"balance": None}, ["5000"]])
    async def test_malformed_balance(self, body):
        """Wrongly shaped balance responses are reported as an unavailable reserve."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        client = HttpReserveAsset(RESERVE_URL, address=RESERVE, holder=CONTRACT, transport=transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.balance_of(CONTRACT)

    @pytest.mark.asyncio
    async def test_non_boolean_transfer_result(self):
        """A transfer acknowledgement must be a JSON boolean."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"success": "no"}))
        client = HttpReserveAsset(RESERVE_URL, address=RESERVE, holder=CONTRACT, transport=transport)

        with pytest.raises(ExternalServiceUnavailable):
            await client.transfer(ALICE, 100)


class TestClientFactory:
    """Provider selection from settings."""

    def test_defaults_to_dry_run(self):
        """Test defaults to dry run."""
        settings = Settings(_env_file=None, oracle_fee=42, reserve_seed_balance=500)

        oracle = create_oracle_client(settings)
        reserve = create_reserve_client(settings)

        assert isinstance(oracle, DryRunEntropyOracle)
        assert oracle.fee == 42
        assert isinstance(reserve, DryRunReserve)
        assert reserve.balances[settings.contract_address] == 500

    def test_http_providers(self):
        """Test http providers."""
        settings = Settings(
            _env_file=None,
            oracle_provider="http",
            oracle_url=ORACLE_URL,
            reserve_provider="http",
            reserve_url=RESERVE_URL,
        )

        oracle = create_oracle_client(settings)
        reserve = create_reserve_client(settings)

        assert isinstance(oracle, HttpEntropyOracle)
        assert oracle.callback == settings.contract_address
        assert isinstance(reserve, HttpReserveAsset)
        assert reserve.holder == settings.contract_address

    def test_http_without_url_falls_back(self):
        """Test http without url falls back."""
        settings = Settings(_env_file=None, oracle_provider="http", reserve_provider="http")

        assert isinstance(create_oracle_client(settings), DryRunEntropyOracle)
        assert isinstance(create_reserve_client(settings), DryRunReserve)
