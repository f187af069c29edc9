"""Interfaces of the external collaborators the swap service depends on."""

from abc import ABC, abstractmethod


class EntropyOracleClient(ABC):
    """Abstract base class for entropy oracles.

    Fulfillment happens out of band: the oracle's own process delivers entropy some
    time after ``request_entropy`` returns, and the service only ever polls for it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Client name identifier."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def address(self) -> str:
        """On-ledger address of the oracle."""
        raise NotImplementedError()

    @abstractmethod
    async def get_fee(self) -> int:
        """Current fee, in native units, for one entropy request."""
        raise NotImplementedError()

    @abstractmethod
    async def request_entropy(self, payment: int, tag: str) -> int:
        """Submit a paid request and return the oracle-assigned request id.

        Args:
            payment: Native value forwarded with the request
            tag: Opaque 32-byte hex tag chosen by the requester

        Returns:
            Request id
        """
        raise NotImplementedError()

    @abstractmethod
    async def is_request_fulfilled(self, request_id: int) -> bool:
        """Whether the oracle has delivered entropy for ``request_id``."""
        raise NotImplementedError()


class ReserveAssetClient(ABC):
    """Abstract base class for the public reserve token."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Client name identifier."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def address(self) -> str:
        """On-ledger address of the reserve token."""
        raise NotImplementedError()

    @abstractmethod
    async def balance_of(self, holder: str) -> int:
        """Public balance of ``holder`` in base units."""
        raise NotImplementedError()

    @abstractmethod
    async def transfer(self, to: str, amount: int) -> bool:
        """Transfer ``amount`` from the contract's holdings to ``to``.

        Returns:
            True if the token accepted the transfer
        """
        raise NotImplementedError()
