from datetime import datetime
from typing import Optional

from loguru import logger

from bizpulse.clients import RegistryClient
from bizpulse.config import REGISTRY_VERIFY_URL, REGISTRY_WEIGHT
from bizpulse.models import ExternalBusinessRecord, NormalizedBusiness, SourceCheck
from bizpulse.normalizer import pick
from bizpulse.verifiers.base import VerificationSource

# Values of the registry's status enumerator that mean "active licence"
ACTIVE_STATUSES = ("פעיל", "active")


class MunicipalRegistrySource(VerificationSource):
    """Primary registry: always attempted, passes on an active licence."""
    source_id = "municipal_registry"
    provides_context = True

    def __init__(self, client: RegistryClient, weight: int = REGISTRY_WEIGHT,
                 url_template: str = REGISTRY_VERIFY_URL):
        self.client = client
        self.weight = weight
        self.url_template = url_template

    async def fetch(self, identifier: str, business: Optional[NormalizedBusiness]) -> Optional[ExternalBusinessRecord]:
        return await self.client.fetch_record(identifier)

    def evaluate(self, identifier: str, business: Optional[NormalizedBusiness],
                 record: Optional[ExternalBusinessRecord]) -> Optional[SourceCheck]:
        if not record:
            logger.debug(f"Registry has no record for {identifier}")
            return None
        status = str(pick(record, "status") or "").strip().lower()
        if status not in ACTIVE_STATUSES:
            logger.debug(f"Registry record {identifier} has status '{status}', not active")
            return None
        return SourceCheck(
            source_id=self.source_id,
            status="verified_active",
            verification_url=self.url_template.format(identifier=identifier),
            checked_at=datetime.now(),
            raw_payload=record,
        )
