"""HTTP transport for discovery documents and API calls.

The transporter is the only component that talks to the network.
Retrying connection-level failures is its responsibility; nothing above
it retries.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from apidiscovery.errors import TransportError
from shared.config import TransportSettings
from shared.logging import get_logger
from shared.models import TransportResponse

logger = get_logger(__name__)


class Transporter(ABC):
    """Capability for issuing HTTP requests."""

    @abstractmethod
    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json: Any = None
    ) -> TransportResponse:
        """
        Issue a request and return the decoded response.

        Raises:
            TransportError: If the request fails or returns an error status
        """
        pass


class HttpTransporter(Transporter):
    """
    Transporter backed by ``httpx.AsyncClient``.

    The client is created lazily and reused until closed.
    """

    def __init__(
        self,
        settings: Optional[TransportSettings] = None,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        """
        Initialize the transporter.

        Args:
            settings: Timeout, retry and user agent configuration
            client: Pre-built HTTP client (mainly for tests)
        """
        self.settings = settings or TransportSettings()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout,
                headers={"User-Agent": self.settings.user_agent},
                follow_redirects=True
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransporter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json: Any = None
    ) -> TransportResponse:
        client = await self._get_client()
        request_headers = {"User-Agent": self.settings.user_agent, **(headers or {})}

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.retry_attempts),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=(
                    retry_if_exception_type(httpx.TransportError)
                    & retry_if_not_exception_type(httpx.UnsupportedProtocol)
                ),
                reraise=True
            ):
                with attempt:
                    response = await client.request(
                        method,
                        url,
                        headers=request_headers,
                        params=params,
                        json=json
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("Request failed", url=url, status=e.response.status_code)
            raise TransportError(
                f"Request to {url} failed with status {e.response.status_code}",
                url=url,
                status=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Request failed", url=url, error=str(e))
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        return TransportResponse(
            data=decode_body(response),
            status=response.status_code,
            headers=dict(response.headers),
            url=str(response.url)
        )


def decode_body(response: httpx.Response) -> Any:
    """Decode a JSON body, falling back to text for anything else."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
