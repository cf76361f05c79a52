"""JSON file registry of known clusters."""

import asyncio
import base64
import binascii
import logging
import uuid
from pathlib import Path

import aiofiles
from pydantic import TypeAdapter

from corefwd.core.errors import ClusterNotFoundError
from corefwd.core.models import Cluster

logger = logging.getLogger(__name__)

_clusters_adapter = TypeAdapter(list[Cluster])


def normalize_kubeconfig(kubeconfig: str) -> str:
    """Return the kubeconfig base64 encoded, encoding plain text as needed."""
    text = kubeconfig.strip()
    try:
        base64.b64decode(text, validate=True)
        return text
    except (binascii.Error, ValueError):
        return base64.b64encode(kubeconfig.encode("utf-8")).decode("ascii")


class ClusterStore:
    """Cluster registry persisted as a flat JSON list in ``clusters.json``."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self._clusters: list[Cluster] | None = None
        self._lock = asyncio.Lock()

    @property
    def clusters_file(self) -> Path:
        return self.data_dir / "clusters.json"

    async def _load(self) -> list[Cluster]:
        if self._clusters is not None:
            return self._clusters

        if not self.clusters_file.exists():
            self._clusters = []
            return self._clusters

        async with aiofiles.open(self.clusters_file, "r") as f:
            content = await f.read()

        self._clusters = _clusters_adapter.validate_json(content) if content.strip() else []
        logger.debug(f"Loaded {len(self._clusters)} clusters from {self.clusters_file}")
        return self._clusters

    async def _save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = _clusters_adapter.dump_json(self._clusters or [], indent=2)

        async with aiofiles.open(self.clusters_file, "wb") as f:
            await f.write(payload)

    async def list_clusters(self) -> list[Cluster]:
        async with self._lock:
            return [c.model_copy() for c in await self._load()]

    async def get_cluster(self, cluster_id: str) -> Cluster:
        """Return the cluster or raise ``ClusterNotFoundError``."""
        async with self._lock:
            for c in await self._load():
                if c.id == cluster_id:
                    return c.model_copy()
        raise ClusterNotFoundError(f"Cluster {cluster_id} not found")

    async def add_cluster(self, cluster: Cluster) -> Cluster:
        async with self._lock:
            clusters = await self._load()
            if not cluster.id:
                cluster = cluster.model_copy(update={"id": str(uuid.uuid4())})
            clusters.append(cluster)
            await self._save()

        logger.info(f"Registered cluster {cluster.name} ({cluster.id})")
        return cluster

    async def update_cluster(self, cluster: Cluster) -> None:
        async with self._lock:
            clusters = await self._load()
            for i, c in enumerate(clusters):
                if c.id == cluster.id:
                    clusters[i] = cluster
                    await self._save()
                    return
        raise ClusterNotFoundError(f"Cluster {cluster.id} not found")

    async def delete_cluster(self, cluster_id: str) -> None:
        """Remove a cluster; unknown ids are ignored."""
        async with self._lock:
            clusters = await self._load()
            remaining = [c for c in clusters if c.id != cluster_id]
            if len(remaining) == len(clusters):
                return
            self._clusters = remaining
            await self._save()

        logger.info(f"Removed cluster {cluster_id}")
