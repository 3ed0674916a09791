"""Independent verification sources and the engine that combines them."""
from typing import Any, Optional

from bizpulse.models import NormalizedBusiness, SourceCheck


class VerificationSource:
    """
    One independent system consulted to corroborate a business record.

    A check is split in two: `fetch` performs the lookup and raises when the
    lookup itself fails; `evaluate` applies the source's pass condition to the
    fetched payload and returns a SourceCheck, or None when the condition fails.
    """
    source_id = "source"
    weight = 0
    needs_context = False  # requires a NormalizedBusiness (name/address) to query
    provides_context = False  # payload is a registry record a NormalizedBusiness can be built from

    @property
    def is_configured(self) -> bool:
        return True

    async def fetch(self, identifier: str, business: Optional[NormalizedBusiness]) -> Any:
        raise NotImplementedError

    def evaluate(self, identifier: str, business: Optional[NormalizedBusiness], payload: Any) -> Optional[SourceCheck]:
        raise NotImplementedError

    async def check(self, identifier: str, business: Optional[NormalizedBusiness]) -> Optional[SourceCheck]:
        payload = await self.fetch(identifier, business)
        return self.evaluate(identifier, business, payload)
