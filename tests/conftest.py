"""Pytest configuration and fixtures."""

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from corefwd.config import Settings
from corefwd.core.base import BaseClusterHandle
from corefwd.core.coredns.manager import CoreDNSRuleManager
from corefwd.core.models import Cluster
from corefwd.core.services import Services, build_services

BASE_COREFILE = """.:53 {
    errors
    health {
        lameduck 5s
    }
    ready
    kubernetes cluster.local in-addr.arpa ip6.arpa {
        pods insecure
        fallthrough in-addr.arpa ip6.arpa
        ttl 30
    }
    prometheus :9153
    forward . /etc/resolv.conf {
        max_concurrent 1000
    }
    cache 30
    loop
    reload
    loadbalance
}
"""


class FakeClusterHandle(BaseClusterHandle):
    """In-memory stand-in for a cluster's CoreDNS ConfigMap."""

    def __init__(self, cluster_id: str = "c1", corefile: str = "", service_ip: str = "10.96.0.10"):
        self.cluster_id = cluster_id
        self.corefile = corefile
        self.service_ip = service_ip
        self.writes: list[str] = []
        self.timeouts: list[float | None] = []
        self.fetch_error: Exception | None = None
        self.store_error: Exception | None = None
        self.probe_error: Exception | None = None
        self.probes = 0

    async def fetch_corefile(self, timeout: float | None = None) -> str:
        self.timeouts.append(timeout)
        await asyncio.sleep(0)
        if self.fetch_error:
            raise self.fetch_error
        return self.corefile

    async def store_corefile(self, corefile: str, timeout: float | None = None) -> None:
        self.timeouts.append(timeout)
        await asyncio.sleep(0)
        if self.store_error:
            raise self.store_error
        self.writes.append(corefile)
        self.corefile = corefile

    async def resolver_address(self, timeout: float | None = None) -> str:
        return self.service_ip

    async def probe(self, timeout: float | None = None) -> None:
        self.probes += 1
        if self.probe_error:
            raise self.probe_error


class FakeHandleFactory:
    """Handle factory keeping one fake per cluster id, counting builds."""

    def __init__(self, corefile: str = BASE_COREFILE):
        self.corefile = corefile
        self.handles: dict[str, FakeClusterHandle] = {}
        self.builds: list[str] = []

    def __call__(self, cluster: Cluster) -> FakeClusterHandle:
        self.builds.append(cluster.id)
        if cluster.id not in self.handles:
            self.handles[cluster.id] = FakeClusterHandle(cluster.id, corefile=self.corefile)
        return self.handles[cluster.id]


@pytest.fixture
def sample_corefile() -> str:
    """Stock kubeadm Corefile."""
    return BASE_COREFILE


@pytest.fixture
def fake_handle(sample_corefile: str) -> FakeClusterHandle:
    return FakeClusterHandle("c1", corefile=sample_corefile)


@pytest.fixture
def manager() -> CoreDNSRuleManager:
    return CoreDNSRuleManager(request_timeout=3.0)


@pytest.fixture
def cluster() -> Cluster:
    return Cluster(id="c1", name="prod", kubeconfig="YXBpVmVyc2lvbjogdjEK")


@pytest.fixture
def handle_factory() -> FakeHandleFactory:
    return FakeHandleFactory()


@pytest.fixture
def services(tmp_path, handle_factory: FakeHandleFactory) -> Services:
    settings = Settings(data_dir=str(tmp_path / "data"), request_timeout=3.0)
    return build_services(settings, handle_factory)


@pytest_asyncio.fixture
async def api_client(services: Services) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for API testing."""
    from corefwd.api.main import app, state

    state.services = services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    state.services = None
