"""
Location-confirmation client (Google Places text search).
"""
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.clients.http import HttpClient
from bizpulse.config import PLACES_SEARCH_URL
from bizpulse.errors import TransientError
from bizpulse.retry import RetryPolicy

_OK_STATUSES = ("OK", "ZERO_RESULTS")


class PlacesClient(HttpClient):
    source_name = "google_places"

    def __init__(self, api_key: str, base_url: str = PLACES_SEARCH_URL,
                 retry_policy: Optional[RetryPolicy] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self.retry_policy = retry_policy or RetryPolicy()

    async def search(self, text: str) -> List[Dict[str, Any]]:
        """
        Run a text search and return candidate places.

        Raises:
            TransientError: If the API answers with an error status (quota, denied, ...).
        """
        async def _call():
            data = await self._request_json("GET", self.base_url, params={"query": text, "key": self.api_key})
            status = (data or {}).get("status")
            if status not in _OK_STATUSES:
                raise TransientError(f"Places API status {status}", source=self.source_name)
            return data.get("results") or []

        logger.debug(f"▶️ Places search for '{text}'")
        return await self.retry_policy.run(_call)
