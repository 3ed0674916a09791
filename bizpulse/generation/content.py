"""
Content-generation stages.

Each stage sends one prompt to the completion client (through the shared
retry policy), parses the JSON answer defensively and hands the payload to
the matching builder in `defaults`, so a stage always returns a well-typed
object. Transport failures propagate as TransientError; the orchestrator
decides whether a stage is fatal.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from bizpulse.config import COST_PER_CALL, CURRENCY
from bizpulse.errors import MalformedResponseError
from bizpulse.generation import defaults
from bizpulse.generation.industry import IndustryProfile, industry_guidance
from bizpulse.models import (
    BusinessIntelligence,
    CatalogProduct,
    ClassSession,
    DistributionCopy,
    GeneratedContentBundle,
    LogoBrief,
    MenuItem,
    NormalizedBusiness,
    SeoMetadata,
    TeamMember,
    Testimonial,
    WelcomeMessage,
)
from bizpulse.retry import RetryPolicy

JSON_ONLY = "Always respond with valid JSON only."

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class UsageMeter:
    """Counts successful generation calls and the coarse cost estimate."""
    cost_per_call: float = COST_PER_CALL
    calls: int = 0

    def record(self) -> None:
        self.calls += 1

    @property
    def cost(self) -> float:
        return round(self.calls * self.cost_per_call, 4)


def parse_json_payload(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse a model answer into a dict.

    Args:
        text (Optional[str]): Raw completion text, possibly wrapped in a markdown fence.

    Returns:
        Dict[str, Any]: The decoded JSON object.

    Raises:
        MalformedResponseError: If the text is empty, not JSON, or not a JSON object.
    """
    cleaned = _FENCE.sub("", (text or "").strip()).strip()
    if not cleaned:
        raise MalformedResponseError("Empty completion", raw=text)
    try:
        payload = json.loads(cleaned)
    except ValueError as e:
        raise MalformedResponseError(f"Completion is not valid JSON: {e}", raw=text) from e
    if not isinstance(payload, dict):
        raise MalformedResponseError("Completion is not a JSON object", raw=text)
    return payload


def _describe(business: NormalizedBusiness) -> str:
    lines = [
        f"Business Name: {business.name}",
        f"Category: {business.category}",
        f"Location: {business.address}{', ' + business.city if business.city else ''}",
    ]
    if business.description:
        lines.append(f"Description: {business.description}")
    if business.employees:
        lines.append(f"Employees: {business.employees}")
    return "\n".join(lines)


class ContentGenerator:
    """One method per generation stage, all sharing one client, policy and meter."""

    def __init__(self, client, retry_policy: Optional[RetryPolicy] = None, meter: Optional[UsageMeter] = None):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.meter = meter or UsageMeter()

    async def _complete_json(self, system_prompt: str, user_prompt: str, temperature: float = 0.7) -> Dict[str, Any]:
        """Retried completion; malformed output resolves to an empty payload."""
        text = await self.retry_policy.run(
            lambda: self.client.complete(system_prompt, user_prompt, response_format="json", temperature=temperature)
        )
        self.meter.record()
        try:
            return parse_json_payload(text)
        except MalformedResponseError as e:
            logger.debug(f"⚠️ {e}; using defaults")
            return {}

    # --- primary bundle ------------------------------------------------------

    async def generate_bundle(self, business: NormalizedBusiness, industry: IndustryProfile) -> GeneratedContentBundle:
        prompt = f"""You are a professional web designer and copywriter. Generate a complete website for this business:

{_describe(business)}

Generate the following in JSON format:
1. heroTitle: Compelling main headline (max 60 chars)
2. heroSubtitle: Engaging subtitle explaining what they do (max 120 chars)
3. aboutContent: 2-3 paragraph "About Us" section (150-250 words), paragraphs separated by a blank line
4. services: Array of 4-8 services with name, description, and estimated price in {CURRENCY}
5. seoTitle: SEO-optimized page title (50-60 chars)
6. seoDescription: Meta description (150-160 chars)
7. keywords: Array of 5-8 relevant SEO keywords
8. colorPalette: {{primary, secondary, accent}} 6-digit hex colors appropriate for the industry
9. typography: {{heading, body}} font family names
10. logoPrompt: Detailed prompt to generate a logo
11. templateType: "{industry.template_type}"

Make it professional, engaging, and industry-appropriate.{industry_guidance(industry)}"""
        payload = await self._complete_json(
            f"You are an expert web designer and copywriter specializing in small business websites. {JSON_ONLY}",
            prompt,
            temperature=0.8,
        )
        return defaults.build_bundle(payload, business, industry)

    # --- industry-specific sections -----------------------------------------

    async def generate_menu(self, business: NormalizedBusiness, industry: IndustryProfile) -> List[MenuItem]:
        prompt = f"""Generate a realistic menu for this restaurant:

{_describe(business)}

Generate 8-12 menu items. Each item should have:
- name: Dish name
- description: Brief, appetizing description (20-40 words)
- price: Realistic price in {CURRENCY}
- category: appetizer, main, dessert, or beverage
{industry_guidance(industry)}"""
        payload = await self._complete_json(
            f'You are a restaurant consultant and menu designer. {JSON_ONLY} Return an object with a "menu" array.',
            prompt,
            temperature=0.8,
        )
        return defaults.build_menu(payload)

    async def generate_product_catalog(self, business: NormalizedBusiness,
                                       industry: IndustryProfile) -> List[CatalogProduct]:
        prompt = f"""Generate a product catalog for this shop:

{_describe(business)}

Generate 6-10 products. Each product should have name, description (20-40 words),
price in {CURRENCY} and category.
{industry_guidance(industry)}"""
        payload = await self._complete_json(
            f'You are a retail merchandiser. {JSON_ONLY} Return an object with a "products" array.',
            prompt,
        )
        return defaults.build_products(payload)

    async def generate_class_schedule(self, business: NormalizedBusiness,
                                      industry: IndustryProfile) -> List[ClassSession]:
        prompt = f"""Generate a weekly class schedule for this studio:

{_describe(business)}

Generate 6-10 classes. Each class should have name, day, time (HH:MM), duration,
level (Beginner, Intermediate, Advanced or All levels) and instructor.
{industry_guidance(industry)}"""
        payload = await self._complete_json(
            f'You are a fitness studio manager. {JSON_ONLY} Return an object with a "classes" array.',
            prompt,
        )
        return defaults.build_classes(payload)

    async def generate_team_roster(self, business: NormalizedBusiness,
                                   industry: IndustryProfile) -> List[TeamMember]:
        owner = f"\nOwner: {business.owner}" if business.owner else ""
        prompt = f"""Generate a team section for this business:

{_describe(business)}{owner}

Generate 3-5 team members. Each member should have name, role and a short bio (30-50 words).
{industry_guidance(industry)}"""
        payload = await self._complete_json(
            f'You write team pages for small business websites. {JSON_ONLY} Return an object with a "team" array.',
            prompt,
        )
        return defaults.build_team(payload)

    async def generate_testimonials(self, business: NormalizedBusiness) -> List[Testimonial]:
        prompt = f"""Generate customer testimonials for this business:

{_describe(business)}

Generate 3-5 testimonials. Each should have author (first name and last initial),
quote (20-40 words) and rating (1-5)."""
        payload = await self._complete_json(
            f'You write authentic customer testimonials. {JSON_ONLY} Return an object with a "testimonials" array.',
            prompt,
        )
        return defaults.build_testimonials(payload)

    async def generate_supplementary(self, kind: str, business: NormalizedBusiness,
                                     industry: IndustryProfile) -> List[Any]:
        """Dispatch to the stage producing `kind` (menu | products | classes | team)."""
        stages = {
            "menu": self.generate_menu,
            "products": self.generate_product_catalog,
            "classes": self.generate_class_schedule,
            "team": self.generate_team_roster,
        }
        if kind not in stages:
            raise ValueError(f"Unknown supplementary asset kind: {kind}")
        return await stages[kind](business, industry)

    # --- branding, intelligence, SEO, distribution ---------------------------

    async def generate_logo_brief(self, business: NormalizedBusiness, industry: IndustryProfile,
                                  bundle: GeneratedContentBundle) -> LogoBrief:
        palette = bundle.color_palette or industry.palette
        prompt = f"""Create a logo design brief for this business:

{_describe(business)}
Brand colors: {palette.primary}, {palette.secondary}, {palette.accent}
Suggested styles: {', '.join(industry.logo_styles)}

Return JSON with:
- dallePrompt: Detailed image-generation prompt for a clean, scalable logo
- style: One word style (modern, classic, playful, minimalist)
- colorScheme: Description of the colors used
- symbolism: What the mark represents
- culturalElements: Local cultural touches, if any
- variations: Array of 2-3 alternative concepts"""
        payload = await self._complete_json(f"You are a brand identity designer. {JSON_ONLY}", prompt)
        return defaults.build_logo_brief(payload, business)

    async def generate_intelligence(self, business: NormalizedBusiness) -> BusinessIntelligence:
        prompt = f"""Analyze this business and provide strategic insights:

{_describe(business)}

Provide a JSON response with:
1. competitorCount: Estimated number of competitors in the area
2. marketPosition: Brief description of their likely market position
3. opportunities: Array of 3-5 market opportunities
4. recommendations: Array of 3-5 recommendations with {{title, description, impact (high/medium/low), effort (high/medium/low)}}
5. targetAudience: Array of 3-5 customer segments
6. uniqueSellingPoints: Array of 3-5 potential USPs"""
        payload = await self._complete_json(
            f"You are a business strategy consultant specializing in local businesses. {JSON_ONLY}", prompt
        )
        return defaults.build_intelligence(payload)

    async def generate_seo_metadata(self, business: NormalizedBusiness, industry: IndustryProfile,
                                    bundle: GeneratedContentBundle) -> SeoMetadata:
        prompt = f"""Write SEO metadata for the landing page of this business:

{_describe(business)}
Headline: {bundle.hero_title}

Return JSON with title (50-60 chars), description (150-160 chars), keywords (5-10),
ogTitle and ogDescription.
{industry_guidance(industry)}"""
        payload = await self._complete_json(f"You are an SEO specialist. {JSON_ONLY}", prompt, temperature=0.5)
        return defaults.build_seo(payload, business, industry)

    async def generate_distribution_copy(self, business: NormalizedBusiness, url: str) -> DistributionCopy:
        prompt = f"""Write launch announcements for this new business:

{_describe(business)}
Website: {url}

Return JSON with:
- twitter: max 280 characters, include the website link
- facebook: 2-3 friendly sentences with the website link
- instagram: caption with 3-5 hashtags
- linkedin: professional announcement (optional)"""
        payload = await self._complete_json(f"You are a social media manager. {JSON_ONLY}", prompt, temperature=0.8)
        return defaults.build_distribution(payload, business, url)

    async def generate_welcome_message(self, business: NormalizedBusiness, url: str) -> WelcomeMessage:
        prompt = f"""Generate a warm, professional welcome email for a new business owner.

Business: {business.name}
Owner: {business.owner or 'the business owner'}
Category: {business.category}
Website URL: {url}

The email should congratulate them on registering their business, tell them their
free website is ready and encourage them to claim it. 150-200 words.
Return JSON with {{subject, body}}. Body should be HTML formatted."""
        payload = await self._complete_json(
            f"You are a marketing copywriter specializing in welcome emails. {JSON_ONLY}", prompt
        )
        return defaults.build_welcome(payload, business, url)
