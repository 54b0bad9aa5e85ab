"""
FastAPI GHE Registry service main entry point.

The service keeps the list of GitHub Enterprise servers an organization can
connect to. Servers are probed for GitHub identity before they are stored in
the Server Registry.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ghe_registry import __version__
from ghe_registry.api.errors import register_exception_handlers
from ghe_registry.api.routes import router, servers_router
from ghe_registry.config.settings import get_settings
from ghe_registry.registry.probe import GithubServerProbe
from ghe_registry.registry.server_registry import ServerRegistry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()

    # Initialize the server registry and probe
    logger.info(f"Loading server registry from: {settings.server_registry_path}")
    app.state.server_registry = ServerRegistry(settings.server_registry_path)
    app.state.server_probe = GithubServerProbe.from_settings(settings)
    app.state.settings = settings

    if not settings.api_token:
        logger.warning("No API token configured, authentication is disabled")

    logger.info(
        f"GHE Registry starting in {settings.environment} mode"
        f" (servers registered: {len(app.state.server_registry)})"
    )

    yield

    # Cleanup on shutdown
    logger.info("GHE Registry shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="GHE Registry",
        description=(
            "Registry of GitHub Enterprise servers. Each server's API URL is "
            "probed for GitHub identity before it is registered, and names and "
            "URLs are kept unique."
        ),
        version=__version__,
        docs_url="/docs" if settings.debug or settings.environment == "development" else None,
        redoc_url="/redoc" if settings.debug or settings.environment == "development" else None,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routes
    app.include_router(router)
    app.include_router(servers_router)

    return app


# Create the application instance
app = create_app()


def run() -> None:
    """Run the application using uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "ghe_registry.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
