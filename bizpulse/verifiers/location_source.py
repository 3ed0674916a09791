from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.clients import PlacesClient
from bizpulse.config import LOCATION_WEIGHT, PLACES_VERIFY_URL
from bizpulse.models import NormalizedBusiness, SourceCheck
from bizpulse.verifiers.base import VerificationSource
from bizpulse.verifiers.fuzzy import best_match

OPEN_STATUSES = (None, "OPERATIONAL")


class LocationSource(VerificationSource):
    """Confirms that a place with matching name and address exists and is operating."""
    source_id = "google_places"
    needs_context = True

    def __init__(self, client: Optional[PlacesClient], weight: int = LOCATION_WEIGHT,
                 url_template: str = PLACES_VERIFY_URL):
        self.client = client
        self.weight = weight
        self.url_template = url_template

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def fetch(self, identifier: str, business: Optional[NormalizedBusiness]) -> List[Dict[str, Any]]:
        query = " ".join(p for p in (business.name, business.address, business.city) if p)
        return await self.client.search(query)

    def evaluate(self, identifier: str, business: Optional[NormalizedBusiness],
                 places: List[Dict[str, Any]]) -> Optional[SourceCheck]:
        places = places or []
        match = best_match(business.name, business.address, places)
        if match is None:
            logger.debug(f"No location match for '{business.name}' among {len(places)} places")
            return None
        if match.get("business_status") not in OPEN_STATUSES:
            logger.debug(f"Place for '{business.name}' is {match.get('business_status')}")
            return None
        return SourceCheck(
            source_id=self.source_id,
            status="location_verified",
            verification_url=self.url_template.format(place_id=match.get("place_id", "")),
            checked_at=datetime.now(),
            raw_payload=match,
        )
