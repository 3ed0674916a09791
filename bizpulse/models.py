"""
Typed data models for the generation-verification-validation pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

# Raw registry record: loosely typed, keys vary between native-language and transliterated variants
ExternalBusinessRecord = Dict[str, Any]


@dataclass
class NormalizedBusiness:
    """Canonical business shape consumed by every downstream stage."""
    identifier: str
    name: str
    category: str
    address: str
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    employees: Optional[int] = None
    status: str = "active"  # active | expired | suspended
    registration_date: Optional[str] = None
    neighborhood: Optional[str] = None
    owner: Optional[str] = None
    company_id: Optional[str] = None


@dataclass(frozen=True)
class SourceCheck:
    """One passing verification source."""
    source_id: str
    status: str
    verification_url: str
    checked_at: datetime
    raw_payload: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a multi-source verification."""
    verified: bool
    sources: List[SourceCheck]
    trust_score: int  # 0..100
    verified_at: datetime
    # source_id -> passed | failed_check | error | not_configured
    source_outcomes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "VerificationResult":
        return cls(verified=False, sources=[], trust_score=0, verified_at=datetime.now())


@dataclass
class Offering:
    name: str
    description: str
    price: Optional[str] = None


@dataclass
class ColorPalette:
    primary: str
    secondary: str
    accent: str


@dataclass
class Typography:
    heading: str
    body: str


@dataclass
class MenuItem:
    name: str
    description: str
    price: str
    category: str  # appetizer | main | dessert | beverage


@dataclass
class CatalogProduct:
    name: str
    description: str
    price: str
    category: Optional[str] = None


@dataclass
class ClassSession:
    name: str
    day: str
    time: str
    duration: str
    level: str = "All levels"
    instructor: Optional[str] = None


@dataclass
class TeamMember:
    name: str
    role: str
    bio: str


@dataclass
class Testimonial:
    author: str
    quote: str
    rating: int = 5


SECTION_NAMES = ("menu", "products", "classes", "team", "testimonials")


@dataclass
class GeneratedContentBundle:
    """
    Primary generated artifact. Primary fields are written once by the bundle
    stage; later stages only attach the sections listed in SECTION_NAMES.
    """
    hero_title: str
    hero_subtitle: str
    narrative: str
    offerings: List[Offering]
    seo_title: str
    seo_description: str
    keywords: List[str]
    color_palette: Optional[ColorPalette]
    typography: Optional[Typography]
    brand_asset_prompt: str
    template_type: Optional[str]
    menu: List[MenuItem] = field(default_factory=list)
    products: List[CatalogProduct] = field(default_factory=list)
    classes: List[ClassSession] = field(default_factory=list)
    team: List[TeamMember] = field(default_factory=list)
    testimonials: List[Testimonial] = field(default_factory=list)

    def attach_section(self, name: str, items: List[Any]) -> None:
        """Attach a supplementary section without touching primary fields."""
        if name not in SECTION_NAMES:
            raise ValueError(f"Unknown bundle section: {name}")
        setattr(self, name, list(items))


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    severity: Severity = Severity.LOW
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    score: int  # 0..100
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]
    suggestions: List[str]


@dataclass
class LogoBrief:
    """LLM-authored brand-asset prompt."""
    prompt: str
    style: str
    color_scheme: str
    symbolism: str
    cultural_elements: Optional[str] = None
    variations: List[str] = field(default_factory=list)


@dataclass
class VectorPlaceholder:
    svg: str
    style: str  # initials | wordmark | icon
    background_color: str
    text_color: str


@dataclass
class BrandAssets:
    placeholder: VectorPlaceholder
    brief: Optional[LogoBrief] = None


@dataclass
class Recommendation:
    title: str
    description: str
    impact: str  # high | medium | low
    effort: str  # high | medium | low


@dataclass
class BusinessIntelligence:
    competitor_count: int
    market_position: str
    opportunities: List[str]
    recommendations: List[Recommendation]
    target_audience: List[str]
    differentiators: List[str]


@dataclass
class SeoMetadata:
    title: str
    description: str
    keywords: List[str]
    og_title: str
    og_description: str
    structured_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DistributionCopy:
    """Platform-specific announcement text."""
    twitter: str
    facebook: str
    instagram: str
    linkedin: Optional[str] = None

    def posts(self) -> Dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v}


@dataclass
class WelcomeMessage:
    subject: str
    body: str


@dataclass
class Notification:
    subject: str
    message: str
    priority: str = "normal"  # low | normal | high | critical
    tags: List[str] = field(default_factory=list)
    data: Optional[Dict[str, Any]] = None
    recipient: Optional[str] = None


@dataclass
class GenerationOptions:
    generate_branding: bool = True
    generate_intelligence: bool = True
    send_welcome_message: bool = False
    skip_validation: bool = False
    max_regenerations: int = 0
    logo_style: str = "initials"


@dataclass(frozen=True)
class GenerationMetadata:
    stage_calls_used: int
    elapsed_ms: int
    estimated_cost: float


@dataclass(frozen=True)
class GenerationResult:
    """Aggregate outcome for one business in one run."""
    success: bool
    identifier: str
    metadata: GenerationMetadata
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


@dataclass(frozen=True)
class BatchReport:
    """Read-only rollup of one batch run."""
    processed: int
    successful: int
    failed: int
    skipped: int
    success_rate: float
    results: List[GenerationResult]
    escalated: bool = False
    elapsed_ms: int = 0

    def to_frame(self) -> pd.DataFrame:
        """One row per business, suitable for CSV export."""
        rows = []
        for r in self.results:
            rows.append({
                "identifier": r.identifier,
                "name": r.business.name if r.business else None,
                "success": r.success,
                "skipped": r.skipped,
                "trust_score": r.verification.trust_score if r.verification else None,
                "quality_score": r.validation.score if r.validation else None,
                "content_url": r.content_url,
                "stage_calls_used": r.metadata.stage_calls_used,
                "elapsed_ms": r.metadata.elapsed_ms,
                "estimated_cost": r.metadata.estimated_cost,
                "errors": "; ".join(r.errors),
                "warnings": len(r.warnings),
            })
        return pd.DataFrame(rows, columns=[
            "identifier", "name", "success", "skipped", "trust_score", "quality_score",
            "content_url", "stage_calls_used", "elapsed_ms", "estimated_cost", "errors", "warnings",
        ])


def to_payload(obj: Any) -> Any:
    """Convert dataclasses (recursively) into JSON-safe structures."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_payload(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): to_payload(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_payload(v) for v in obj]
    return obj
