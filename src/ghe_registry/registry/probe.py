"""
Remote identity probe for GitHub Enterprise servers.

Before a server is registered its API URL is fetched once. A server counts as
GitHub when the response carries the identity header (``X-GitHub-Request-Id``
by default). The status code of the response is not inspected.
"""

import logging

import httpx

from ghe_registry.config.settings import Settings
from ghe_registry.registry.models import ErrorCode, FieldError
from ghe_registry.registry.validation import NOT_GITHUB_MESSAGE

logger = logging.getLogger(__name__)


def describe_failure(exc: BaseException) -> str:
    """Return the text reported to clients for a failed probe."""
    # Connect errors raised inside a task group arrive wrapped
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return str(exc) or type(exc).__name__


def check_url(api_url: str) -> None:
    """Reject URLs that cannot be requested before any connection is made.

    Raises:
        httpx.UnsupportedProtocol: If the scheme is not http or https.
        httpx.InvalidURL: If the URL cannot be parsed, has no host or has a
            port outside 0-65535.
    """
    url = httpx.URL(api_url)

    if url.scheme not in ("http", "https"):
        raise httpx.UnsupportedProtocol(
            "Request URL is missing an 'http://' or 'https://' protocol."
        )
    if not url.host:
        raise httpx.InvalidURL(f"No host in URL: {api_url}")
    if url.port is not None and not 0 <= url.port <= 65535:
        raise httpx.InvalidURL(f"Invalid port: {url.port}")


class GithubServerProbe:
    """Checks that a URL is reachable and answers like a GitHub API server."""

    def __init__(
        self,
        timeout: float = 10.0,
        identity_header: str = "X-GitHub-Request-Id",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            timeout: Timeout in seconds for the whole request.
            identity_header: Header whose presence marks a GitHub server.
            transport: Optional httpx transport, mainly for tests.
        """
        self.timeout = timeout
        self.identity_header = identity_header
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GithubServerProbe":
        """Build a probe from application settings."""
        return cls(
            timeout=settings.probe_timeout,
            identity_header=settings.identity_header,
        )

    async def probe(self, api_url: str) -> FieldError | None:
        """Probe ``api_url`` for GitHub identity.

        Args:
            api_url: The candidate API root URL.

        Returns:
            None if the server looks like GitHub, otherwise an INVALID error
            for the ``apiUrl`` field.
        """
        try:
            check_url(api_url)
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.timeout,
                follow_redirects=False,
            ) as client:
                response = await client.get(api_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Probe of {api_url} failed: {e!r}")
            return FieldError(
                field="apiUrl",
                code=ErrorCode.INVALID,
                message=describe_failure(e),
            )
        except (OSError, ValueError, OverflowError, ExceptionGroup) as e:
            # Socket level failures that the transport does not map to httpx errors
            logger.warning(f"Probe of {api_url} failed while connecting: {e!r}")
            return FieldError(
                field="apiUrl",
                code=ErrorCode.INVALID,
                message=describe_failure(e),
            )

        if self.identity_header not in response.headers:
            logger.warning(
                f"Probe of {api_url} returned {response.status_code} "
                f"without {self.identity_header} header"
            )
            return FieldError(
                field="apiUrl",
                code=ErrorCode.INVALID,
                message=NOT_GITHUB_MESSAGE,
            )

        logger.info(f"Probe of {api_url} identified a GitHub server")
        return None
