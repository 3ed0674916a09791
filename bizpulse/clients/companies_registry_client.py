"""
Legal companies-registry client (national open-data CKAN endpoint).
"""
import json
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.clients.http import HttpClient
from bizpulse.config import COMPANIES_REGISTRY_RESOURCE_ID, COMPANIES_REGISTRY_URL
from bizpulse.retry import RetryPolicy


class CompaniesRegistryClient(HttpClient):
    """Searches registered companies by number or by name."""
    source_name = "companies_registry"

    def __init__(
        self,
        api_key: str,
        base_url: str = COMPANIES_REGISTRY_URL,
        resource_id: str = COMPANIES_REGISTRY_RESOURCE_ID,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self.resource_id = resource_id
        self.retry_policy = retry_policy or RetryPolicy()

    async def find_companies(self, name: Optional[str] = None, company_id: Optional[str] = None,
                             limit: int = 5) -> List[Dict[str, Any]]:
        """
        Search the registry. An exact company number takes precedence over a name search.

        Returns:
            List of raw company records (possibly empty).
        """
        params: Dict[str, Any] = {"resource_id": self.resource_id, "limit": limit}
        if company_id:
            params["filters"] = json.dumps({"מספר חברה": company_id}, ensure_ascii=False)
        elif name:
            params["q"] = name
        else:
            return []

        logger.debug(f"▶️ Companies registry search company_id={company_id} name={name!r}")
        data = await self.retry_policy.run(
            lambda: self._request_json("GET", self.base_url, params=params,
                                       headers={"Authorization": self.api_key})
        )
        records = ((data or {}).get("result") or {}).get("records") or []
        return records if isinstance(records, list) else []
