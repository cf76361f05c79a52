"""Corefile validation API endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from corefwd.core.coredns.config import validate_corefile
from corefwd.core.models import ConfigValidationResult

router = APIRouter()


class ValidateRequest(BaseModel):
    corefile: str


@router.post("/validate", response_model=ConfigValidationResult)
async def validate_config(request: ValidateRequest):
    """Lint a Corefile without touching any cluster."""
    return validate_corefile(request.corefile)
