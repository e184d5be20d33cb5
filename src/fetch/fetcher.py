"""Status fetcher: one GET round trip to the console page."""

import logging
from typing import Optional

import httpx

from src.core.errors import FetchError

logger = logging.getLogger(__name__)


class StatusFetcher:
    """Fetch the build console page body. Owns an httpx.AsyncClient unless one is passed in."""

    def __init__(
        self,
        url: str,
        timeout_sec: float = 30.0,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout_sec = timeout_sec
        headers = {"User-Agent": user_agent} if user_agent else None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_sec,
            follow_redirects=True,
            headers=headers,
        )

    async def fetch(self) -> str:
        """Return the page body. Raises FetchError on transport error, timeout, or non-2xx."""
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"GET {self.url} -> HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"GET {self.url} failed: {e!r}") from e
        logger.debug("Fetched %s (%d bytes)", self.url, len(response.content))
        return response.text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
