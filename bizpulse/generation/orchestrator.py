# bizpulse/generation/orchestrator.py

import time
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.config import COST_PER_CALL, SITE_BASE_URL
from bizpulse.errors import FatalPipelineError, RecordNotFoundError, SkippedRecordError
from bizpulse.generation import defaults
from bizpulse.generation.branding import build_brand_assets
from bizpulse.generation.content import ContentGenerator, UsageMeter
from bizpulse.generation.industry import IndustryProfile, asset_kind_for, classify_industry
from bizpulse.models import (
    BrandAssets,
    BusinessIntelligence,
    DistributionCopy,
    ExternalBusinessRecord,
    GeneratedContentBundle,
    GenerationMetadata,
    GenerationOptions,
    GenerationResult,
    NormalizedBusiness,
    SeoMetadata,
    ValidationResult,
    VerificationResult,
    to_payload,
)
from bizpulse.normalizer import normalize_record, screen_business
from bizpulse.retry import RetryPolicy
from bizpulse.validation import ContentValidator, check_price_realism

BUSINESS_TABLE = "businesses"
SOCIAL_POSTS_TABLE = "social_posts"


@dataclass
class _RunState:
    """Everything one run accumulates before it is frozen into a GenerationResult."""
    identifier: str
    started: float = field(default_factory=time.perf_counter)
    business: Optional[NormalizedBusiness] = None
    verification: Optional[VerificationResult] = None
    bundle: Optional[GeneratedContentBundle] = None
    validation: Optional[ValidationResult] = None
    brand_assets: Optional[BrandAssets] = None
    intelligence: Optional[BusinessIntelligence] = None
    seo: Optional[SeoMetadata] = None
    distribution: Optional[DistributionCopy] = None
    content_id: Optional[str] = None
    content_url: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped: bool = False

    def warn(self, message: str) -> None:
        logger.warning(f"⚠️ [{self.identifier}] {message}")
        self.warnings.append(message)

    def freeze(self, meter: UsageMeter) -> GenerationResult:
        return GenerationResult(
            success=not self.errors,
            identifier=self.identifier,
            metadata=GenerationMetadata(
                stage_calls_used=meter.calls,
                elapsed_ms=int((time.perf_counter() - self.started) * 1000),
                estimated_cost=meter.cost,
            ),
            business=self.business,
            verification=self.verification,
            bundle=self.bundle,
            validation=self.validation,
            brand_assets=self.brand_assets,
            intelligence=self.intelligence,
            seo=self.seo,
            distribution=self.distribution,
            content_id=self.content_id,
            content_url=self.content_url,
            errors=list(self.errors),
            warnings=list(self.warnings),
            skipped=self.skipped,
        )


def business_from_payload(payload: Dict[str, Any]) -> NormalizedBusiness:
    """Rebuild a stored NormalizedBusiness, ignoring unknown keys."""
    known = {f.name for f in fields(NormalizedBusiness)}
    values = {k: v for k, v in (payload or {}).items() if k in known}
    if not values.get("name"):
        raise SkippedRecordError("Stored business has no name")
    values.setdefault("identifier", "")
    values.setdefault("category", "")
    values.setdefault("address", "")
    return NormalizedBusiness(**values)


class GenerationOrchestrator:
    """
    Runs the full pipeline for one business: fetch, verify, classify, generate,
    validate, enrich, persist and distribute.

    Only a missing or unusable record and a failed primary bundle abort a run;
    every other stage degrades to a warning.
    """

    def __init__(
        self,
        registry,
        verifier,
        completion_client,
        storage=None,
        notifier=None,
        validator: Optional[ContentValidator] = None,
        retry_policy: Optional[RetryPolicy] = None,
        cost_per_call: float = COST_PER_CALL,
        site_base_url: str = SITE_BASE_URL,
    ):
        self.registry = registry
        self.verifier = verifier
        self.completion_client = completion_client
        self.storage = storage
        self.notifier = notifier
        self.validator = validator or ContentValidator()
        self.retry_policy = retry_policy or RetryPolicy()
        self.cost_per_call = cost_per_call
        self.site_base_url = site_base_url.rstrip("/")

    def content_url(self, content_id: str) -> str:
        return f"{self.site_base_url}/business/{content_id}"

    async def generate(self, identifier: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """
        Generate, validate and publish content for one registry identifier.

        Args:
            identifier (str): Registry identifier of the business.
            options (Optional[GenerationOptions]): Stage toggles; defaults when omitted.

        Returns:
            GenerationResult: `success=False` with an error string on a fatal stage
            failure. Never raises.
        """
        options = options or GenerationOptions()
        meter = UsageMeter(self.cost_per_call)
        generator = ContentGenerator(self.completion_client, self.retry_policy, meter)
        state = _RunState(identifier=identifier)
        logger.info(f"▶️ Generating content for {identifier}")

        try:
            await self._run_stages(state, generator, options)
        except SkippedRecordError as e:
            state.skipped = True
            state.errors.append(str(e))
            logger.info(f"⏭️ Skipping {identifier}: {e}")
        except FatalPipelineError as e:
            state.errors.append(str(e))
            logger.error(f"❌ Generation failed for {identifier}: {e}")
        except Exception as e:
            state.errors.append(f"Unexpected error: {e}")
            logger.exception(f"❌ Unexpected error while generating {identifier}")

        result = state.freeze(meter)
        if result.success:
            logger.info(
                f"✅ {identifier} done in {result.metadata.elapsed_ms}ms "
                f"({result.metadata.stage_calls_used} calls, ${result.metadata.estimated_cost:.2f}, "
                f"{len(result.warnings)} warnings)"
            )
        return result

    async def _run_stages(self, state: _RunState, generator: ContentGenerator, options: GenerationOptions) -> None:
        # 1. fetch + normalize
        record = await self._fetch_record(state.identifier)
        business = normalize_record(record, state.identifier)
        screen_business(business)
        state.business = business

        # 2. verify
        state.verification = await self._verify(state, business, record)

        # 3. classify
        industry = classify_industry(business.category)
        logger.debug(f"🏷️ {business.name} classified as {industry.key}")

        # 4 + 5. primary bundle and validation
        state.bundle, state.validation = await self._primary_bundle(state, generator, business, industry, options)
        self._fold_validation(state, industry)

        # 6. one supplementary asset set plus testimonials
        await self._supplementary(state, generator, business, industry)

        # 7. branding
        state.brand_assets = await self._branding(state, generator, business, industry, options)

        # 8. intelligence
        if options.generate_intelligence:
            try:
                state.intelligence = await generator.generate_intelligence(business)
            except Exception as e:
                state.warn(f"Business intelligence generation failed: {e}")

        # 9. SEO
        try:
            state.seo = await generator.generate_seo_metadata(business, industry, state.bundle)
        except Exception as e:
            state.warn(f"SEO metadata generation failed, using defaults: {e}")
            state.seo = defaults.build_seo({}, business, industry)

        # 10. persist
        await self._persist(state)

        # 11. distribution copy
        await self._distribute(state, generator, business)

        # 12. welcome message
        if options.send_welcome_message:
            await self._welcome(state, generator, business)

    async def _fetch_record(self, identifier: str) -> ExternalBusinessRecord:
        if not identifier or not str(identifier).strip():
            raise FatalPipelineError("identifier must be a non-empty string")
        try:
            record = await self.registry.fetch_record(identifier)
        except Exception as e:
            raise FatalPipelineError(f"Registry lookup failed for {identifier}: {e}") from e
        if not record:
            raise RecordNotFoundError(identifier)
        return record

    async def _verify(self, state: _RunState, business: NormalizedBusiness,
                      record: ExternalBusinessRecord) -> VerificationResult:
        try:
            # Reuse the record fetched in stage 1
            verification = await self.verifier.verify(state.identifier, business, registry_record=record)
        except Exception as e:
            state.warn(f"Verification failed: {e}")
            return VerificationResult.empty()
        if not verification.verified:
            state.warn(f"Low trust score ({verification.trust_score}/100): business could not be fully verified")
        return verification

    async def _primary_bundle(self, state: _RunState, generator: ContentGenerator, business: NormalizedBusiness,
                              industry: IndustryProfile, options: GenerationOptions):
        try:
            bundle = await generator.generate_bundle(business, industry)
        except Exception as e:
            raise FatalPipelineError(f"Primary content generation failed: {e}") from e

        if options.skip_validation:
            return bundle, None

        validation = self.validator.validate(bundle, business.name)
        attempts = 0
        while not validation.is_valid and attempts < options.max_regenerations:
            attempts += 1
            logger.debug(f"🔁 Regenerating bundle for {business.name} (score {validation.score}, attempt {attempts})")
            try:
                candidate = await generator.generate_bundle(business, industry)
            except Exception as e:
                state.warn(f"Bundle regeneration failed: {e}")
                break
            candidate_validation = self.validator.validate(candidate, business.name)
            if candidate_validation.score > validation.score or candidate_validation.is_valid:
                bundle, validation = candidate, candidate_validation
        return bundle, validation

    def _fold_validation(self, state: _RunState, industry: IndustryProfile) -> None:
        if state.validation is not None:
            for issue in state.validation.warnings:
                state.warnings.append(f"{issue.field}: {issue.message}")
            if not state.validation.is_valid:
                state.warn(f"Content validation failed (score {state.validation.score}/100)")
        for i, offering in enumerate(state.bundle.offerings):
            if not offering.price:
                continue
            realistic, message = check_price_realism(offering.price, state.business.category)
            if not realistic:
                state.warnings.append(f"services[{i}].price: {message}")

    async def _supplementary(self, state: _RunState, generator: ContentGenerator, business: NormalizedBusiness,
                             industry: IndustryProfile) -> None:
        kind = asset_kind_for(industry.template_type)
        try:
            items = await generator.generate_supplementary(kind, business, industry)
        except Exception as e:
            state.warn(f"{kind.capitalize()} generation failed: {e}")
            items = []
        state.bundle.attach_section(kind, items)

        try:
            testimonials = await generator.generate_testimonials(business)
        except Exception as e:
            state.warn(f"Testimonials generation failed: {e}")
            testimonials = []
        state.bundle.attach_section("testimonials", testimonials)

    async def _branding(self, state: _RunState, generator: ContentGenerator, business: NormalizedBusiness,
                        industry: IndustryProfile, options: GenerationOptions) -> BrandAssets:
        palette = state.bundle.color_palette or industry.palette
        brief = None
        if options.generate_branding:
            try:
                brief = await generator.generate_logo_brief(business, industry, state.bundle)
            except Exception as e:
                state.warn(f"Logo brief generation failed: {e}")
        return build_brand_assets(business.name, palette, options.logo_style, brief)

    def _storage_record(self, state: _RunState) -> Dict[str, Any]:
        business = state.business
        return {
            "external_id": state.identifier,
            "name": business.name,
            "category": business.category,
            "address": business.address,
            "phone": business.phone,
            "status": "active",
            "opened_date": business.registration_date,
            "raw_data": to_payload({
                "business": business,
                "content": state.bundle,
                "logo": state.brand_assets,
                "intelligence": state.intelligence,
                "seo": state.seo,
                "verification": state.verification,
                "validation": state.validation,
            }),
        }

    async def _persist(self, state: _RunState) -> None:
        if self.storage is None:
            state.warn("Storage not configured; content was not persisted")
            return
        try:
            state.content_id = await self.storage.insert(BUSINESS_TABLE, self._storage_record(state))
        except Exception as e:
            state.warn(f"Failed to persist content: {e}")
            return
        state.content_url = self.content_url(state.content_id)
        logger.debug(f"💾 {state.business.name} stored at {state.content_url}")

    async def _distribute(self, state: _RunState, generator: ContentGenerator, business: NormalizedBusiness) -> None:
        if not state.content_url:
            state.warn("Distribution copy skipped: no canonical URL")
            return
        try:
            state.distribution = await generator.generate_distribution_copy(business, state.content_url)
        except Exception as e:
            state.warn(f"Distribution copy generation failed: {e}")
            return
        for platform, content in state.distribution.posts().items():
            try:
                await self.storage.insert(SOCIAL_POSTS_TABLE, {
                    "platform": platform,
                    "content": content,
                    "insight_id": state.content_id,
                })
            except Exception as e:
                state.warn(f"Failed to store {platform} post: {e}")

    async def _welcome(self, state: _RunState, generator: ContentGenerator, business: NormalizedBusiness) -> None:
        if not state.content_url:
            state.warn("Welcome message skipped: no canonical URL")
            return
        if self.notifier is None:
            state.warn("Welcome message skipped: notifications not configured")
            return
        if not business.email:
            state.warn("Welcome message skipped: business has no contact email")
            return
        try:
            message = await generator.generate_welcome_message(business, state.content_url)
            outcomes = await self.notifier.send_welcome_message(business.email, message)
        except Exception as e:
            state.warn(f"Welcome message failed: {e}")
            return
        if not any(outcomes.values()):
            state.warn("Welcome message was not delivered")

    async def regenerate(self, content_id: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        """
        Regenerate and re-validate the primary bundle of stored content.

        Args:
            content_id (str): Storage id returned by a previous run.
            options (Optional[GenerationOptions]): Only `skip_validation` is honoured.

        Returns:
            GenerationResult: The stored record is updated in place. Never raises.
        """
        options = options or GenerationOptions()
        meter = UsageMeter(self.cost_per_call)
        generator = ContentGenerator(self.completion_client, self.retry_policy, meter)
        state = _RunState(identifier=content_id, content_id=content_id)
        logger.info(f"🔄 Regenerating content {content_id}")

        try:
            if self.storage is None:
                raise FatalPipelineError("Storage not configured")
            try:
                row = await self.storage.get(BUSINESS_TABLE, content_id)
            except Exception as e:
                raise FatalPipelineError(f"Failed to load content {content_id}: {e}") from e
            if not row:
                raise FatalPipelineError(f"Content {content_id} not found")

            raw_data = row.get("raw_data") or {}
            state.business = business_from_payload(raw_data.get("business"))
            state.identifier = state.business.identifier or content_id
            industry = classify_industry(state.business.category)

            try:
                state.bundle = await generator.generate_bundle(state.business, industry)
            except Exception as e:
                raise FatalPipelineError(f"Primary content generation failed: {e}") from e
            if not options.skip_validation:
                state.validation = self.validator.validate(state.bundle, state.business.name)
                for issue in state.validation.warnings:
                    state.warnings.append(f"{issue.field}: {issue.message}")

            state.content_url = self.content_url(content_id)
            try:
                await self.storage.update(BUSINESS_TABLE, content_id, {
                    "raw_data": {**raw_data, "content": to_payload(state.bundle)},
                    "updated_at": datetime.now().isoformat(),
                })
            except Exception as e:
                state.warn(f"Failed to store regenerated content: {e}")
        except FatalPipelineError as e:
            state.errors.append(str(e))
            logger.error(f"❌ Regeneration failed for {content_id}: {e}")
        except Exception as e:
            state.errors.append(f"Unexpected error: {e}")
            logger.exception(f"❌ Unexpected error while regenerating {content_id}")

        return state.freeze(meter)
