"""
Storage collaborator: Supabase (PostgREST) over aiohttp.
"""
from typing import Any, Dict, Iterable, List, Optional, Set

from loguru import logger

from bizpulse.clients.http import HttpClient
from bizpulse.config import SUPABASE_SERVICE_KEY, SUPABASE_URL
from bizpulse.errors import MalformedResponseError
from bizpulse.retry import RetryPolicy


class StorageClient(HttpClient):
    """Insert/update/fetch rows through the PostgREST interface."""
    source_name = "storage"

    def __init__(self, url: Optional[str] = None, service_key: Optional[str] = None,
                 retry_policy: Optional[RetryPolicy] = None, **kwargs):
        super().__init__(**kwargs)
        url = url or SUPABASE_URL
        service_key = service_key or SUPABASE_SERVICE_KEY
        if not url or not service_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment or config")
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        self.retry_policy = retry_policy or RetryPolicy()

    async def insert(self, table: str, record: Dict[str, Any]) -> str:
        """
        Insert one row and return its id. Not retried: a repeated POST would duplicate the row.

        Raises:
            MalformedResponseError: If the representation returned carries no id.
        """
        headers = {**self.headers, "Prefer": "return=representation"}
        rows = await self._request_json("POST", f"{self.rest_url}/{table}", json=record, headers=headers)
        if not rows or not isinstance(rows, list) or "id" not in rows[0]:
            raise MalformedResponseError(f"Insert into {table} returned no id", raw=str(rows)[:200])
        row_id = str(rows[0]["id"])
        logger.debug(f"💾 Inserted {table} row {row_id}")
        return row_id

    async def update(self, table: str, row_id: str, fields: Dict[str, Any]) -> str:
        await self.retry_policy.run(
            lambda: self._request_json("PATCH", f"{self.rest_url}/{table}", params={"id": f"eq.{row_id}"},
                                       json=fields, headers=self.headers)
        )
        logger.debug(f"💾 Updated {table} row {row_id}")
        return row_id

    async def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        rows = await self.retry_policy.run(
            lambda: self._request_json("GET", f"{self.rest_url}/{table}",
                                       params={"id": f"eq.{row_id}", "select": "*"}, headers=self.headers)
        )
        return rows[0] if rows else None

    async def existing_external_ids(self, external_ids: Iterable[str], table: str = "businesses") -> Set[str]:
        """Return the subset of `external_ids` already stored."""
        ids: List[str] = [str(i) for i in external_ids]
        if not ids:
            return set()
        rows = await self.retry_policy.run(
            lambda: self._request_json("GET", f"{self.rest_url}/{table}",
                                       params={"external_id": f"in.({','.join(ids)})", "select": "external_id"},
                                       headers=self.headers)
        )
        return {str(r["external_id"]) for r in rows or [] if r.get("external_id") is not None}
