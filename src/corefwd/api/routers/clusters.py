"""Cluster registry API endpoints."""

import asyncio
import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from corefwd.core.models import Cluster, ClusterView
from corefwd.core.services import Services
from corefwd.core.store import normalize_kubeconfig

router = APIRouter()

LIST_PROBE_TIMEOUT = 5.0
ADD_PROBE_TIMEOUT = 10.0


async def get_state() -> Services:
    from corefwd.api.main import get_services
    return get_services()


class AddClusterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    kubeconfig: str = Field(..., min_length=1, description="Plain or base64 encoded kubeconfig")


@router.get("", response_model=list[ClusterView])
async def list_clusters(services: Services = Depends(get_state)):
    """List clusters with their connection status."""
    clusters = await services.store.list_clusters()
    statuses = await asyncio.gather(
        *(services.cache.status(c, timeout=LIST_PROBE_TIMEOUT) for c in clusters)
    )
    return [ClusterView.from_cluster(c, s) for c, s in zip(clusters, statuses)]


@router.post("")
async def add_cluster(request: AddClusterRequest, services: Services = Depends(get_state)):
    """Register a cluster after checking that it is reachable."""
    cluster = Cluster(
        id=str(uuid.uuid4()),
        name=request.name,
        kubeconfig=normalize_kubeconfig(request.kubeconfig),
    )

    await services.cache.probe(cluster, timeout=ADD_PROBE_TIMEOUT)
    cluster = await services.store.add_cluster(cluster)

    return {"message": "cluster added successfully", "id": cluster.id}


@router.delete("/{cluster_id}")
async def delete_cluster(cluster_id: str, services: Services = Depends(get_state)):
    """Remove a cluster and drop its cached client."""
    services.cache.evict(cluster_id)
    await services.store.delete_cluster(cluster_id)
    return {"message": "cluster deleted successfully"}
