"""FastAPI application for the CoreDNS forward-rule manager."""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from corefwd import __version__
from corefwd.api.routers import clusters, config, coredns, health
from corefwd.config import configure_logging, load_settings
from corefwd.core.errors import (
    ClusterNotFoundError,
    ConnectivityError,
    CoreDNSManagerError,
    CredentialError,
    DuplicateRuleError,
    InvalidInputError,
    OperationTimeoutError,
    RemoteFetchError,
    RemoteWriteError,
    RuleNotFoundError,
)
from corefwd.core.services import Services, build_services

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CoreDNSManagerError], int] = {
    InvalidInputError: 400,
    CredentialError: 400,
    ClusterNotFoundError: 404,
    RuleNotFoundError: 404,
    DuplicateRuleError: 409,
    ConnectivityError: 502,
    RemoteFetchError: 502,
    RemoteWriteError: 502,
    OperationTimeoutError: 504,
}


# Shared state
class AppState:
    services: Services | None = None


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = load_settings(os.environ.get("COREFWD_CONFIG"))
    configure_logging(settings.log_level)
    state.services = build_services(settings)
    logger.info(f"Cluster registry at {settings.data_dir}")

    yield

    state.services = None


app = FastAPI(
    title="CoreDNS Forward Manager API",
    description="Manage cross-cluster CoreDNS forward rules",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clusters.router, prefix="/api/clusters", tags=["Clusters"])
app.include_router(coredns.router, prefix="/api/clusters", tags=["CoreDNS"])
app.include_router(config.router, prefix="/api/corefile", tags=["Configuration"])
app.include_router(health.router, prefix="/api/health", tags=["Health"])


@app.exception_handler(CoreDNSManagerError)
async def manager_error_handler(request: Request, exc: CoreDNSManagerError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": str(exc), "kind": exc.kind})


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "CoreDNS Forward Manager API",
        "version": __version__,
        "docs": "/docs",
    }


def get_services() -> Services:
    """Dependency to get the shared services."""
    if not state.services:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return state.services


def run():
    """Run the API server."""
    settings = load_settings(os.environ.get("COREFWD_CONFIG"))
    uvicorn.run(
        "corefwd.api.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
