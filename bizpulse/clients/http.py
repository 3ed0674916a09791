"""
Shared aiohttp plumbing with rate limiting using aiolimiter.
"""
import asyncio
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from bizpulse.config import CONCURRENCY, HTTP_TIMEOUT
from bizpulse.errors import MalformedResponseError, TransientError


class HttpClient:
    """
    Base class for JSON-over-HTTP collaborators.
    Owns one lazily created aiohttp session and a token-bucket rate limiter.
    """
    source_name = "http"

    def __init__(self, max_rate: int = CONCURRENCY, timeout: float = HTTP_TIMEOUT):
        # Token bucket: `max_rate` requests per second
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)
        self.timeout = ClientTimeout(total=timeout)
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self.timeout)
        return self._session

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        decode_json: bool = True,
    ) -> Any:
        """
        Send a request and return the response body.

        Args:
            decode_json (bool): Decode the body as JSON; when False the raw text is returned.

        Returns:
            The decoded JSON body, the body text, or None for 204 No Content.

        Raises:
            TransientError: On connection errors, timeouts and non-2xx statuses.
            MalformedResponseError: When a JSON body was expected and the body is not JSON.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.request(method, url, params=params, json=json, headers=headers) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        raise TransientError(f"HTTP {resp.status} from {url}: {text[:200]}", source=self.source_name)
                    if resp.status == 204:
                        return None
                    if not decode_json:
                        return await resp.text()
                    try:
                        return await resp.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponseError(f"Non-JSON response from {url}: {e}") from e
            except asyncio.TimeoutError as e:
                logger.debug(f"⏱️ {self.source_name} {method} {url} timed out")
                raise TransientError(f"Timeout calling {url}", source=self.source_name) from e
            except ClientError as e:
                logger.debug(f"⚠️ {self.source_name} {method} {url} failed: {e}")
                raise TransientError(str(e), source=self.source_name) from e

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body."""
        return await self._request(method, url, decode_json=True, **kwargs)

    async def _request_text(self, method: str, url: str, **kwargs) -> Optional[str]:
        """Send a request whose reply is plain text (webhooks answering `ok`)."""
        return await self._request(method, url, decode_json=False, **kwargs)

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
