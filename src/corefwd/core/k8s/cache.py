"""Per-cluster cache of live cluster handles."""

import asyncio
import logging
import threading
from typing import Callable

from corefwd.core.base import BaseClusterHandle
from corefwd.core.errors import ConnectivityError, CoreDNSManagerError
from corefwd.core.k8s.client import build_handle
from corefwd.core.models import Cluster, ClusterStatus

logger = logging.getLogger(__name__)

HandleFactory = Callable[[Cluster], BaseClusterHandle]


class ClientCache:
    """
    Map cluster ids to handles, creating them on first use.

    A handle stays cached until ``probe`` fails against it or it is evicted
    explicitly. A single lock serializes lookups as well as inserts and
    evictions, but it only guards the map: building a handle and any remote
    call happen outside it, so two concurrent misses for the same id may
    both build a handle and the later insert wins.
    """

    def __init__(
        self,
        handle_factory: HandleFactory = build_handle,
        probe_timeout: float | None = 5.0,
    ):
        self._factory = handle_factory
        self.probe_timeout = probe_timeout
        self._handles: dict[str, BaseClusterHandle] = {}
        self._lock = threading.Lock()

    def __contains__(self, cluster_id: str) -> bool:
        with self._lock:
            return cluster_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def get(self, cluster_id: str) -> BaseClusterHandle | None:
        with self._lock:
            return self._handles.get(cluster_id)

    async def resolve(self, cluster: Cluster) -> BaseClusterHandle:
        """Return the cached handle for ``cluster``, building one on a miss."""
        handle = self.get(cluster.id)
        if handle is not None:
            return handle

        handle = await asyncio.to_thread(self._factory, cluster)

        with self._lock:
            self._handles[cluster.id] = handle
        logger.debug(f"Created client for cluster {cluster.id}")
        return handle

    def evict(self, cluster_id: str) -> None:
        """Drop the cached handle; a no-op when none is cached."""
        with self._lock:
            removed = self._handles.pop(cluster_id, None)
        if removed is not None:
            logger.info(f"Evicted client for cluster {cluster_id}")

    async def probe(self, cluster: Cluster, timeout: float | None = None) -> None:
        """
        Check that the cluster answers, evicting its handle if it does not.

        Raises ``ConnectivityError`` chained from whatever the liveness call
        raised.
        """
        handle = await self.resolve(cluster)
        timeout = self.probe_timeout if timeout is None else timeout

        try:
            await handle.probe(timeout=timeout)
        except Exception as e:
            self.evict(cluster.id)
            logger.warning(f"Probe failed for cluster {cluster.id}: {e}")
            raise ConnectivityError(f"Failed to connect to cluster: {e}") from e

    async def status(self, cluster: Cluster, timeout: float | None = None) -> ClusterStatus:
        """Probe result as a status value instead of an exception."""
        try:
            await self.probe(cluster, timeout=timeout)
        except CoreDNSManagerError as e:
            return ClusterStatus(connected=False, error=str(e))
        return ClusterStatus(connected=True)
