"""
Municipal business-licence registry client (CKAN `datastore_search` API).
"""
import json
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.clients.http import HttpClient
from bizpulse.config import (
    REGISTRY_API_URL,
    REGISTRY_NEW_RESOURCE_ID,
    REGISTRY_RESOURCE_ID,
)
from bizpulse.models import ExternalBusinessRecord
from bizpulse.retry import RetryPolicy

# Native-language key for the licence issue date
ISSUE_DATE_KEYS = ("תאריך_הנפקה", "issue_date", "taarich_rish_rishum")


@dataclass
class RegistryQuery:
    """Parameters for one registry search."""
    limit: int = 100
    offset: int = 0
    status: Optional[str] = None
    category: Optional[str] = None
    record_id: Optional[str] = None
    text: Optional[str] = None
    issued_since: Optional[date] = None
    resource_id: str = REGISTRY_RESOURCE_ID


def _issue_date(record: ExternalBusinessRecord) -> Optional[date]:
    for key in ISSUE_DATE_KEYS:
        value = record.get(key)
        if not value:
            continue
        try:
            return datetime.fromisoformat(str(value)[:10]).date()
        except ValueError:
            continue
    return None


class RegistryClient(HttpClient):
    """Looks up business-licence records in the municipal open-data portal."""
    source_name = "municipal_registry"

    def __init__(self, base_url: str = REGISTRY_API_URL, retry_policy: Optional[RetryPolicy] = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url
        self.retry_policy = retry_policy or RetryPolicy()

    def _params(self, query: RegistryQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "resource_id": query.resource_id,
            "limit": query.limit,
            "offset": query.offset,
        }
        filters = {}
        if query.record_id:
            filters["_id"] = query.record_id
        if query.status:
            filters["status"] = query.status
        if query.category:
            filters["business_type_desc"] = query.category
        if filters:
            params["filters"] = json.dumps(filters, ensure_ascii=False)
        if query.text:
            params["q"] = query.text
        return params

    async def lookup(self, query: RegistryQuery) -> List[ExternalBusinessRecord]:
        """
        Execute one page of a registry search.

        Args:
            query (RegistryQuery): Search parameters.

        Returns:
            List[ExternalBusinessRecord]: Raw records. The issue-date window is
            applied client-side since the datastore filter only supports equality.
        """
        start = time.perf_counter()
        logger.debug(f"▶️ Registry lookup resource={query.resource_id} offset={query.offset} limit={query.limit}")

        data = await self.retry_policy.run(
            lambda: self._request_json("GET", self.base_url, params=self._params(query),
                                       headers={"Accept": "application/json"})
        )
        records = ((data or {}).get("result") or {}).get("records") or []
        if not isinstance(records, list):
            records = []

        if query.issued_since:
            records = [r for r in records if (_issue_date(r) or date.min) >= query.issued_since]

        logger.debug(f"✅ Registry lookup returned {len(records)} records in {time.perf_counter() - start:.2f}s")
        return records

    async def lookup_all(self, query: RegistryQuery, max_pages: int = 10) -> List[ExternalBusinessRecord]:
        """Follow pagination until a short page or `max_pages` is reached."""
        records: List[ExternalBusinessRecord] = []
        offset = query.offset
        for _ in range(max_pages):
            page_query = RegistryQuery(**{**query.__dict__, "offset": offset})
            page = await self.lookup(page_query)
            records.extend(page)
            if len(page) < query.limit:
                break
            offset += query.limit
        return records

    async def fetch_record(self, identifier: str) -> Optional[ExternalBusinessRecord]:
        """Fetch a single licence record by identifier, or None if absent."""
        records = await self.lookup(RegistryQuery(record_id=identifier, limit=1))
        return records[0] if records else None

    async def fetch_new_registrations(self, days_back: int = 1) -> List[ExternalBusinessRecord]:
        """Records whose licence was issued within the last `days_back` days."""
        since = (datetime.now() - timedelta(days=days_back)).date()
        # Filter after paging so short filtered pages don't end pagination early
        records = await self.lookup_all(RegistryQuery(resource_id=REGISTRY_NEW_RESOURCE_ID, limit=1000))
        return [r for r in records if (_issue_date(r) or date.min) >= since]
