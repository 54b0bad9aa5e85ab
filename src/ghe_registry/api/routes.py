"""
FastAPI routes for the GHE Registry service.

Includes the GitHub Enterprise server resource and health endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from ghe_registry import __version__
from ghe_registry.api.auth import require_auth
from ghe_registry.api.errors import BadRequestError, NotFoundError
from ghe_registry.config.settings import Settings
from ghe_registry.registry.models import ErrorResponse, ServerCreateRequest, ServerRecord
from ghe_registry.registry.probe import GithubServerProbe
from ghe_registry.registry.server_registry import ServerRegistry
from ghe_registry.registry.validation import validate_required_fields

logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create Github server"


async def check_organization(request: Request, organization: str) -> None:
    """Reject paths addressing an organization this service does not serve."""
    settings: Settings = request.app.state.settings

    if organization != settings.organization:
        raise NotFoundError(f"Organization '{organization}' not found")


router = APIRouter()

servers_router = APIRouter(
    prefix="/organizations/{organization}/scm/github-enterprise/servers",
    dependencies=[Depends(check_organization)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str
    servers_registered: int


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current status of the registry service.
    """
    settings: Settings = request.app.state.settings
    registry: ServerRegistry = request.app.state.server_registry

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        servers_registered=len(registry),
    )


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with service information."""
    return {
        "service": "GHE Registry - GitHub Enterprise server registry",
        "version": __version__,
        "docs": "/docs",
    }


@servers_router.post(
    "/",
    response_model=ServerRecord,
    dependencies=[Depends(require_auth)],
)
async def create_server(request: Request, payload: ServerCreateRequest) -> ServerRecord:
    """Register a GitHub Enterprise server.

    The request is validated in stages and the first failing stage is reported:
    1. Required fields (name, apiUrl)
    2. Remote probe of apiUrl for GitHub identity
    3. Uniqueness of name and apiUrl

    Args:
        request: FastAPI request object.
        payload: Name and API URL of the server.

    Returns:
        The stored server record.

    Raises:
        BadRequestError: If any validation stage fails.
    """
    registry: ServerRegistry = request.app.state.server_registry
    probe: GithubServerProbe = request.app.state.server_probe

    errors = validate_required_fields(payload)
    if errors:
        logger.warning(f"Rejected server registration, missing fields: {[e.field for e in errors]}")
        raise BadRequestError(CREATE_FAILED_MESSAGE, errors)

    probe_error = await probe.probe(payload.api_url)
    if probe_error:
        raise BadRequestError(CREATE_FAILED_MESSAGE, [probe_error])

    # DuplicateServerError is rendered as a 400 by the registered handler
    return await run_in_threadpool(registry.create, payload.name, payload.api_url)


@servers_router.get(
    "/",
    response_model=list[ServerRecord],
    dependencies=[Depends(require_auth)],
)
async def list_servers(request: Request) -> list[ServerRecord]:
    """List all registered servers in registration order."""
    registry: ServerRegistry = request.app.state.server_registry

    return registry.list_servers()


@servers_router.get("/{server_id}", response_model=ServerRecord)
@servers_router.get("/{server_id}/", response_model=ServerRecord, include_in_schema=False)
async def get_server(request: Request, server_id: str) -> ServerRecord:
    """Load a single server by id.

    Args:
        request: FastAPI request object.
        server_id: SHA-256 hex digest of the server's API URL.

    Raises:
        NotFoundError: If no server has this id.
    """
    registry: ServerRegistry = request.app.state.server_registry

    record = registry.get_server(server_id)
    if record is None:
        raise NotFoundError(f"Server '{server_id}' not found")

    return record


@servers_router.delete(
    "/{server_id}",
    response_model=ServerRecord,
    dependencies=[Depends(require_auth)],
)
@servers_router.delete(
    "/{server_id}/",
    response_model=ServerRecord,
    dependencies=[Depends(require_auth)],
    include_in_schema=False,
)
async def remove_server(request: Request, server_id: str) -> ServerRecord:
    """Remove a server from the registry.

    Returns:
        The removed server record.

    Raises:
        NotFoundError: If no server has this id.
    """
    registry: ServerRegistry = request.app.state.server_registry

    record = await run_in_threadpool(registry.remove_server, server_id)
    if record is None:
        raise NotFoundError(f"Server '{server_id}' not found")

    return record
