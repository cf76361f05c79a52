"""Health check API endpoints."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/live")
async def liveness():
    """Kubernetes liveness probe."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness():
    """Kubernetes readiness probe."""
    from corefwd.api.main import state

    if state.services is None:
        return {"status": "not_ready", "reason": "services not initialized"}
    return {"status": "ready"}
