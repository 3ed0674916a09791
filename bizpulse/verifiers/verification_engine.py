# bizpulse/verifiers/verification_engine.py

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from bizpulse.clients import CompaniesRegistryClient, PlacesClient, RegistryClient
from bizpulse.config import TRUST_THRESHOLD
from bizpulse.errors import SkippedRecordError
from bizpulse.models import ExternalBusinessRecord, NormalizedBusiness, SourceCheck, VerificationResult
from bizpulse.normalizer import normalize_record
from bizpulse.verifiers.base import VerificationSource
from bizpulse.verifiers.legal_source import LegalRegistrySource
from bizpulse.verifiers.location_source import LocationSource
from bizpulse.verifiers.registry_source import MunicipalRegistrySource


def build_sources(
    registry: RegistryClient,
    companies: Optional[CompaniesRegistryClient] = None,
    places: Optional[PlacesClient] = None,
) -> List[VerificationSource]:
    """Primary registry first; the others are attempted only when their clients exist."""
    return [
        MunicipalRegistrySource(registry),
        LegalRegistrySource(companies),
        LocationSource(places),
    ]


class VerificationEngine:
    """
    Accumulates a weighted trust score from independent sources.

    A source contributes its weight only when its lookup succeeds and its pass
    condition holds; a failing source contributes nothing and never aborts the run.
    """

    def __init__(self, sources: Sequence[VerificationSource], threshold: int = TRUST_THRESHOLD):
        self.sources = list(sources)
        self.threshold = threshold

    async def verify(self, identifier: str, business: Optional[NormalizedBusiness] = None,
                     registry_record: Optional[ExternalBusinessRecord] = None) -> VerificationResult:
        """
        Verify one business against every configured source.

        Args:
            identifier (str): Registry identifier of the business.
            business (Optional[NormalizedBusiness]): Already-normalized record; when absent
                it is derived from the primary registry's payload, whether or not that
                payload passes the registry's own check.
            registry_record (Optional[ExternalBusinessRecord]): Registry record the caller
                already fetched; used instead of a second registry lookup.

        Returns:
            VerificationResult: `verified == (trust_score >= threshold)`.

        Raises:
            ValueError: If `identifier` is empty. Nothing is raised once sources are attempted.
        """
        if not identifier or not str(identifier).strip():
            raise ValueError("identifier must be a non-empty string")

        checks: List[SourceCheck] = []
        outcomes: Dict[str, str] = {}
        trust_score = 0

        for source in self.sources:
            if not source.is_configured:
                outcomes[source.source_id] = "not_configured"
                continue
            if source.needs_context and business is None:
                logger.debug(f"Skipping {source.source_id} for {identifier}: no business context")
                outcomes[source.source_id] = "no_context"
                continue
            try:
                if source.provides_context and registry_record is not None:
                    payload: Any = registry_record
                else:
                    payload = await source.fetch(identifier, business)
            except Exception as e:
                logger.warning(f"⚠️ {source.source_id} verification failed for {identifier}: {e}")
                outcomes[source.source_id] = "error"
                continue

            if business is None and source.provides_context and payload:
                try:
                    business = normalize_record(payload, identifier)
                except SkippedRecordError as e:
                    logger.debug(f"Cannot derive business context from {source.source_id}: {e}")

            try:
                check = source.evaluate(identifier, business, payload)
            except Exception as e:
                logger.warning(f"⚠️ {source.source_id} returned an unusable payload for {identifier}: {e}")
                outcomes[source.source_id] = "error"
                continue

            if check is None:
                outcomes[source.source_id] = "failed_check"
                continue

            checks.append(check)
            trust_score += source.weight
            outcomes[source.source_id] = "passed"

        trust_score = min(trust_score, 100)
        logger.debug(f"🔎 Verification for {identifier}: trust_score={trust_score} outcomes={outcomes}")
        return VerificationResult(
            verified=trust_score >= self.threshold,
            sources=checks,
            trust_score=trust_score,
            verified_at=datetime.now(),
            source_outcomes=outcomes,
        )
