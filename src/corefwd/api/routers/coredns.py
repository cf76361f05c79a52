"""CoreDNS configuration and forward rule API endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from corefwd.core.models import CoreDNSInfo, ForwardRule, parse_rule_identity
from corefwd.core.services import Services

router = APIRouter()


async def get_state() -> Services:
    from corefwd.api.main import get_services
    return get_services()


class UpdateCorefileRequest(BaseModel):
    corefile: str = Field(..., min_length=1)


class AddForwardRuleRequest(BaseModel):
    namespace: str = Field(
        ..., description="'namespace', 'service.namespace' or either with .svc.cluster.local"
    )
    target_ip: str


@router.get("/{cluster_id}/coredns", response_model=CoreDNSInfo)
async def get_coredns_config(cluster_id: str, services: Services = Depends(get_state)):
    """Current Corefile, parsed forward rules and kube-dns address."""
    handle = await services.handle_for(cluster_id)
    return await services.manager.get_info(handle)


@router.put("/{cluster_id}/coredns")
async def update_corefile(
    cluster_id: str,
    request: UpdateCorefileRequest,
    services: Services = Depends(get_state),
):
    """Replace the whole Corefile."""
    handle = await services.handle_for(cluster_id)
    await services.manager.update_corefile(handle, request.corefile)
    return {"message": "corefile updated successfully"}


@router.post("/{cluster_id}/rules")
async def add_forward_rule(
    cluster_id: str,
    request: AddForwardRuleRequest,
    services: Services = Depends(get_state),
):
    """Add a forward rule."""
    rule = ForwardRule.from_name_input(request.namespace, request.target_ip)
    handle = await services.handle_for(cluster_id)
    await services.manager.add_rule(handle, rule)
    return {"message": "forward rule added successfully", "rule": rule}


@router.delete("/{cluster_id}/rules/{name}")
async def delete_forward_rule(
    cluster_id: str,
    name: str,
    fqdn: bool = Query(default=False, description="Rule uses the .svc.cluster.local form"),
    services: Services = Depends(get_state),
):
    """Remove a forward rule. Unknown rules are not reported as errors."""
    full_name, is_full_fqdn = parse_rule_identity(name)

    handle = await services.handle_for(cluster_id)
    await services.manager.delete_rule(handle, full_name, is_full_fqdn=fqdn or is_full_fqdn)
    return {"message": "forward rule deleted successfully"}
