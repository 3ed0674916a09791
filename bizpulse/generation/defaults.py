"""
Bundle schema with defaults.

Every field a generation stage produces has exactly one canonical default,
defined here and applied whenever the service output is missing, empty or
wrongly typed, so downstream stages always receive well-typed objects.
"""
from typing import Any, Callable, Dict, List, Optional, TypeVar

from bizpulse.generation.industry import IndustryProfile
from bizpulse.models import (
    BusinessIntelligence,
    CatalogProduct,
    ClassSession,
    ColorPalette,
    DistributionCopy,
    GeneratedContentBundle,
    LogoBrief,
    MenuItem,
    NormalizedBusiness,
    Offering,
    Recommendation,
    SeoMetadata,
    TeamMember,
    Testimonial,
    Typography,
    WelcomeMessage,
)

T = TypeVar("T")

LEVELS = ("high", "medium", "low")


def text(value: Any, default: str) -> str:
    """Non-empty string or `default`."""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        value = str(value).strip()
        if value:
            return value
    return default


def optional_text(value: Any) -> Optional[str]:
    result = text(value, "")
    return result or None


def text_list(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    items = [text(v, "") for v in value]
    items = [v for v in items if v]
    return items or list(default)


def items(value: Any, builder: Callable[[Dict[str, Any]], Optional[T]]) -> List[T]:
    """Build objects from a list of dicts, dropping anything that is not a dict."""
    if not isinstance(value, list):
        return []
    built = [builder(v) for v in value if isinstance(v, dict)]
    return [b for b in built if b is not None]


def level(value: Any) -> str:
    value = text(value, "medium").lower()
    return value if value in LEVELS else "medium"


def _location(business: NormalizedBusiness) -> str:
    return f"{business.address}, {business.city}" if business.city else business.address


# --- primary bundle ---------------------------------------------------------

def build_palette(value: Any, fallback: ColorPalette) -> ColorPalette:
    if not isinstance(value, dict):
        return ColorPalette(fallback.primary, fallback.secondary, fallback.accent)
    return ColorPalette(
        primary=text(value.get("primary"), fallback.primary),
        secondary=text(value.get("secondary"), fallback.secondary),
        accent=text(value.get("accent"), fallback.accent),
    )


def build_typography(value: Any, fallback: Typography) -> Typography:
    if not isinstance(value, dict):
        return Typography(fallback.heading, fallback.body)
    return Typography(
        heading=text(value.get("heading"), fallback.heading),
        body=text(value.get("body"), fallback.body),
    )


def _offering(d: Dict[str, Any]) -> Offering:
    # Empty names are kept so the validator can flag them
    return Offering(
        name=text(d.get("name"), ""),
        description=text(d.get("description"), ""),
        price=optional_text(d.get("price")),
    )


def build_bundle(payload: Dict[str, Any], business: NormalizedBusiness,
                 industry: IndustryProfile) -> GeneratedContentBundle:
    return GeneratedContentBundle(
        hero_title=text(payload.get("heroTitle"), business.name),
        hero_subtitle=text(payload.get("heroSubtitle"), f"Welcome to {business.name}"),
        narrative=text(
            payload.get("aboutContent"),
            f"{business.name} is a {business.category} located in {business.address}.",
        ),
        offerings=items(payload.get("services"), _offering),
        seo_title=text(payload.get("seoTitle"), business.name),
        seo_description=text(
            payload.get("seoDescription"),
            f"{business.name} - {business.category} in {business.city or business.address}",
        ),
        keywords=text_list(payload.get("keywords"), [k for k in (business.category, business.city) if k]),
        color_palette=build_palette(payload.get("colorPalette"), industry.palette),
        typography=build_typography(payload.get("typography"), industry.fonts),
        brand_asset_prompt=text(payload.get("logoPrompt"), f"Logo for {business.name}"),
        template_type=text(payload.get("templateType"), industry.template_type),
    )


# --- industry-specific sections -------------------------------------------

def build_menu(payload: Dict[str, Any]) -> List[MenuItem]:
    def _item(d):
        name = text(d.get("name"), "")
        if not name:
            return None
        return MenuItem(
            name=name,
            description=text(d.get("description"), ""),
            price=text(d.get("price"), "Market price"),
            category=text(d.get("category"), "main").lower(),
        )
    return items(payload.get("menu"), _item)


def build_products(payload: Dict[str, Any]) -> List[CatalogProduct]:
    def _item(d):
        name = text(d.get("name"), "")
        if not name:
            return None
        return CatalogProduct(
            name=name,
            description=text(d.get("description"), ""),
            price=text(d.get("price"), "Contact for price"),
            category=optional_text(d.get("category")),
        )
    return items(payload.get("products"), _item)


def build_classes(payload: Dict[str, Any]) -> List[ClassSession]:
    def _item(d):
        name = text(d.get("name"), "")
        if not name:
            return None
        return ClassSession(
            name=name,
            day=text(d.get("day"), "TBA"),
            time=text(d.get("time"), "TBA"),
            duration=text(d.get("duration"), "60 min"),
            level=text(d.get("level"), "All levels"),
            instructor=optional_text(d.get("instructor")),
        )
    return items(payload.get("classes"), _item)


def build_team(payload: Dict[str, Any]) -> List[TeamMember]:
    def _item(d):
        name = text(d.get("name"), "")
        if not name:
            return None
        return TeamMember(name=name, role=text(d.get("role"), "Team member"), bio=text(d.get("bio"), ""))
    return items(payload.get("team"), _item)


def build_testimonials(payload: Dict[str, Any]) -> List[Testimonial]:
    def _item(d):
        quote = text(d.get("quote"), "")
        if not quote:
            return None
        try:
            rating = max(1, min(5, int(d.get("rating", 5))))
        except (TypeError, ValueError):
            rating = 5
        return Testimonial(author=text(d.get("author"), "Verified customer"), quote=quote, rating=rating)
    return items(payload.get("testimonials"), _item)


# --- branding, intelligence, SEO, distribution -----------------------------

def build_logo_brief(payload: Dict[str, Any], business: NormalizedBusiness) -> LogoBrief:
    return LogoBrief(
        prompt=text(payload.get("dallePrompt"), f"Professional logo for {business.name}, {business.category} business"),
        style=text(payload.get("style"), "modern"),
        color_scheme=text(payload.get("colorScheme"), "Based on brand colors"),
        symbolism=text(payload.get("symbolism"), "Representative of the business type"),
        cultural_elements=optional_text(payload.get("culturalElements")),
        variations=text_list(payload.get("variations"), []),
    )


_IMPACT_RANK = {"high": 0, "medium": 1, "low": 2}
_EFFORT_RANK = {"low": 0, "medium": 1, "high": 2}


def build_intelligence(payload: Dict[str, Any]) -> BusinessIntelligence:
    def _rec(d):
        title = text(d.get("title"), "")
        if not title:
            return None
        return Recommendation(
            title=title,
            description=text(d.get("description"), ""),
            impact=level(d.get("impact")),
            effort=level(d.get("effort")),
        )
    recommendations = items(payload.get("recommendations"), _rec)
    # High impact first, then cheapest effort
    recommendations.sort(key=lambda r: (_IMPACT_RANK[r.impact], _EFFORT_RANK[r.effort]))
    try:
        competitors = max(0, int(payload.get("competitorCount", 5)))
    except (TypeError, ValueError):
        competitors = 5
    return BusinessIntelligence(
        competitor_count=competitors,
        market_position=text(payload.get("marketPosition"), "New market entrant"),
        opportunities=text_list(payload.get("opportunities"), []),
        recommendations=recommendations,
        target_audience=text_list(payload.get("targetAudience"), []),
        differentiators=text_list(payload.get("uniqueSellingPoints"), []),
    )


def local_business_schema(business: NormalizedBusiness, url: Optional[str] = None) -> Dict[str, Any]:
    """schema.org LocalBusiness JSON-LD built from registry data only."""
    data: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "LocalBusiness",
        "name": business.name,
        "address": {
            "@type": "PostalAddress",
            "streetAddress": business.address,
            "addressLocality": business.city,
        },
    }
    if business.phone:
        data["telephone"] = business.phone
    if url:
        data["url"] = url
    return data


def build_seo(payload: Dict[str, Any], business: NormalizedBusiness, industry: IndustryProfile,
              url: Optional[str] = None) -> SeoMetadata:
    title = text(payload.get("title"), f"{business.name} | {business.category}")
    description = text(
        payload.get("description"),
        f"{business.name} - {business.category} in {_location(business)}.",
    )
    return SeoMetadata(
        title=title,
        description=description,
        keywords=text_list(payload.get("keywords"), list(industry.seo_keywords[:5])),
        og_title=text(payload.get("ogTitle"), title),
        og_description=text(payload.get("ogDescription"), description),
        structured_data=local_business_schema(business, url),
    )


def build_distribution(payload: Dict[str, Any], business: NormalizedBusiness, url: str) -> DistributionCopy:
    announcement = f"Meet {business.name}, new in {business.city or 'town'}! {url}"
    return DistributionCopy(
        twitter=text(payload.get("twitter"), announcement),
        facebook=text(payload.get("facebook"), announcement),
        instagram=text(payload.get("instagram"), announcement),
        linkedin=optional_text(payload.get("linkedin")),
    )


def build_welcome(payload: Dict[str, Any], business: NormalizedBusiness, url: str) -> WelcomeMessage:
    return WelcomeMessage(
        subject=text(payload.get("subject"), f"Congrats on opening {business.name}! Your website is ready"),
        body=text(
            payload.get("body"),
            f"<p>Congratulations on your new business!</p><p>Visit your website at {url}</p>",
        ),
    )
