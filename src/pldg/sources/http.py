"""Async HTTP client for the static file server.

Adapters that read published files (the dashboard serves cohort CSVs under
/data/) share this client so connection pooling, timeouts and request
logging behave the same everywhere. No retries: the orchestrator's fallback
chain is the only recovery mechanism.

Usage:
    async with FileServerClient("http://localhost:3000") as client:
        text = await client.get_text("/data/cohort-2/data.csv")
        exists = await client.head("/data/cohort-2/data.csv")
"""

import logging

import httpx


logger = logging.getLogger(__name__)


class FileServerError(Exception):
    """Request to the file server failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class FileServerClient:
    """Async HTTP client with connection pooling.

    Args:
        base_url: Base URL for all requests
        timeout: Request timeout in seconds (default: 30)
    """

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FileServerClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str) -> httpx.Response:
        """Send a request and return the response if it succeeded.

        Args:
            method: HTTP method (GET, HEAD)
            path: Resource path (relative to base_url)

        Returns:
            The 2xx response

        Raises:
            FileServerError: On non-2xx status, timeout or network failure
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        if not path.startswith("/"):
            path = f"/{path}"

        logger.debug("%s %s%s", method, self.base_url, path)

        try:
            response = await self._client.request(method, path)
        except httpx.TimeoutException as e:
            logger.error("Request timeout for %s: %s", path, e)
            raise FileServerError(f"Request timeout: {e}") from e
        except httpx.NetworkError as e:
            logger.error("Network error for %s: %s", path, e)
            raise FileServerError(f"Network error: {e}") from e
        except Exception as e:
            logger.error("Unexpected error for %s: %s", path, e)
            raise FileServerError(f"Unexpected error: {e}") from e

        logger.debug("Response: %d for %s", response.status_code, path)

        if not response.is_success:
            raise FileServerError(
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
        return response

    async def get_text(self, path: str) -> str:
        """GET a resource and return its body as text."""
        response = await self._request("GET", path)
        return response.text

    async def head(self, path: str) -> bool:
        """HEAD a resource. Returns True if it exists, raises otherwise."""
        await self._request("HEAD", path)
        return True
