"""
Roulette Feed Client

Async client for the external results endpoint.
Expected response: JSON array whose first element carries `roll` and
`created_at`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog

from ..errors import FetchError, ParseError

logger = structlog.get_logger(__name__)


class RouletteFeedClient:
    """
    Fetches the most recent result from the feed

    Transport failures and non-2xx responses raise FetchError; payloads of
    the wrong shape raise ParseError.
    """

    def __init__(
        self,
        feed_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            feed_url: Endpoint to poll
            timeout: Timeout for one request, in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.feed_url = feed_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.stats = {
            "requests_made": 0,
            "errors": 0,
            "last_fetch": None
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    "User-Agent": "RouletteFeed/1.0"
                }
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def get_stats(self) -> Dict[str, Any]:
        """Request counters for the status endpoint"""
        return {**self.stats, "feed_url": self.feed_url}

    async def fetch_latest(self) -> Dict[str, Any]:
        """
        Fetch the newest raw result

        Returns:
            The first element of the feed array

        Raises:
            FetchError: network failure or non-success status
            ParseError: body is not a non-empty JSON array of objects
        """
        client = await self._get_client()
        self.stats["requests_made"] += 1
        self.stats["last_fetch"] = datetime.now(timezone.utc).isoformat()

        try:
            response = await client.get(self.feed_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.stats["errors"] += 1
            raise FetchError(
                f"feed returned HTTP {e.response.status_code}",
                status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            self.stats["errors"] += 1
            raise FetchError(f"feed request failed: {e!r}") from e

        try:
            data = response.json()
        except ValueError as e:
            self.stats["errors"] += 1
            raise ParseError("feed body is not JSON") from e

        if not isinstance(data, list) or not data:
            self.stats["errors"] += 1
            raise ParseError("expected a non-empty JSON array")

        latest = data[0]
        if not isinstance(latest, dict):
            self.stats["errors"] += 1
            raise ParseError("feed item is not an object")

        return latest
