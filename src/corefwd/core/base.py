"""Abstract base classes defining the remote cluster interface."""

from abc import ABC, abstractmethod


class BaseClusterHandle(ABC):
    """
    Capability to read and write one cluster's CoreDNS configuration.

    Every call takes a timeout in seconds (``None`` waits indefinitely).
    Implementations raise ``OperationTimeoutError`` on expiry and never
    retry on their own.
    """

    cluster_id: str

    @abstractmethod
    async def fetch_corefile(self, timeout: float | None = None) -> str:
        """Return the current Corefile text."""
        ...

    @abstractmethod
    async def store_corefile(self, corefile: str, timeout: float | None = None) -> None:
        """Replace the Corefile text."""
        ...

    @abstractmethod
    async def resolver_address(self, timeout: float | None = None) -> str:
        """Address other clusters should forward to."""
        ...

    @abstractmethod
    async def probe(self, timeout: float | None = None) -> None:
        """Cheap connectivity check; raises on failure."""
        ...
