"""Server Registry for GitHub Enterprise endpoints."""

from ghe_registry.registry.models import FieldError, ServerCreateRequest, ServerRecord
from ghe_registry.registry.probe import GithubServerProbe
from ghe_registry.registry.server_registry import DuplicateServerError, ServerRegistry

__all__ = [
    "DuplicateServerError",
    "FieldError",
    "GithubServerProbe",
    "ServerCreateRequest",
    "ServerRecord",
    "ServerRegistry",
]
