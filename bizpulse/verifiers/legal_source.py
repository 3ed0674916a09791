from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.clients import CompaniesRegistryClient
from bizpulse.config import COMPANIES_VERIFY_URL, LEGAL_REGISTRY_WEIGHT
from bizpulse.models import NormalizedBusiness, SourceCheck
from bizpulse.verifiers.base import VerificationSource
from bizpulse.verifiers.fuzzy import names_match

REGISTERED_STATUSES = ("פעילה", "active", "registered")


def _field(record: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        if record.get(key):
            return str(record[key]).strip()
    return ""


class LegalRegistrySource(VerificationSource):
    """Confirms legal registration of the company behind the licence."""
    source_id = "companies_registry"
    needs_context = True

    def __init__(self, client: Optional[CompaniesRegistryClient], weight: int = LEGAL_REGISTRY_WEIGHT,
                 url_template: str = COMPANIES_VERIFY_URL):
        self.client = client
        self.weight = weight
        self.url_template = url_template

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def fetch(self, identifier: str, business: Optional[NormalizedBusiness]) -> List[Dict[str, Any]]:
        return await self.client.find_companies(name=business.name, company_id=business.company_id)

    def evaluate(self, identifier: str, business: Optional[NormalizedBusiness],
                 companies: List[Dict[str, Any]]) -> Optional[SourceCheck]:
        for company in companies or []:
            name = _field(company, "שם חברה", "company_name")
            alt_name = _field(company, "שם באנגלית", "company_name_en")
            status = _field(company, "סטטוס חברה", "status").lower()
            if status not in REGISTERED_STATUSES:
                continue
            company_id = _field(company, "מספר חברה", "company_number")
            # Trade names often differ from the legal name; an exact company number is enough
            exact_id = bool(business.company_id) and company_id == business.company_id
            if not exact_id and not (names_match(business.name, name) or names_match(business.name, alt_name)):
                continue
            return SourceCheck(
                source_id=self.source_id,
                status="verified_registered",
                verification_url=self.url_template.format(company_id=company_id),
                checked_at=datetime.now(),
                raw_payload=company,
            )
        logger.debug(f"No registered company matches '{business.name}'")
        return None
