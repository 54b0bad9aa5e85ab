"""FastAPI service for the GHE Registry."""

from ghe_registry.api.main import app, create_app, run
from ghe_registry.api.routes import router, servers_router

__all__ = ["app", "create_app", "run", "router", "servers_router"]
