"""Bearer token check for protected routes."""

import hmac
import logging

from fastapi import Header, Request

from ghe_registry.api.errors import UnauthorizedError
from ghe_registry.config.settings import Settings

logger = logging.getLogger(__name__)


def verify_bearer_token(authorization: str | None, expected: str | None) -> bool:
    """Verify an Authorization header against the configured token.

    Args:
        authorization: Value of the Authorization header.
        expected: Configured API token.

    Returns:
        True if the token matches or authentication is disabled.
    """
    if not expected:
        # Authentication disabled
        return True

    if not authorization:
        return False

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return False

    return hmac.compare_digest(token.strip().encode(), expected.encode())


async def require_auth(
    request: Request,
    authorization: str | None = Header(None),
) -> None:
    """FastAPI dependency rejecting requests without a valid bearer token."""
    settings: Settings = request.app.state.settings

    if not verify_bearer_token(authorization, settings.api_token):
        logger.warning(f"Unauthorized request to {request.url.path}")
        raise UnauthorizedError("Authentication required")
