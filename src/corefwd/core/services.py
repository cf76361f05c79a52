"""Wiring of the registry, client cache and rule manager."""

from dataclasses import dataclass

from corefwd.config import Settings
from corefwd.core.base import BaseClusterHandle
from corefwd.core.coredns.manager import CoreDNSRuleManager
from corefwd.core.k8s.cache import ClientCache, HandleFactory
from corefwd.core.k8s.client import build_handle
from corefwd.core.store import ClusterStore


@dataclass
class Services:
    """Shared state used by the API and the CLI."""

    settings: Settings
    store: ClusterStore
    cache: ClientCache
    manager: CoreDNSRuleManager

    async def handle_for(self, cluster_id: str) -> BaseClusterHandle:
        """Look the cluster up and resolve its cached handle."""
        cluster = await self.store.get_cluster(cluster_id)
        return await self.cache.resolve(cluster)


def build_services(settings: Settings, handle_factory: HandleFactory = build_handle) -> Services:
    return Services(
        settings=settings,
        store=ClusterStore(settings.data_dir),
        cache=ClientCache(handle_factory, probe_timeout=settings.probe_timeout),
        manager=CoreDNSRuleManager(
            request_timeout=settings.request_timeout,
            serialize_writes=settings.serialize_writes,
        ),
    )
