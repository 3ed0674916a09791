"""
Industry taxonomy used to classify businesses into templates and to steer prompts.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from bizpulse.models import ColorPalette, Typography


@dataclass(frozen=True)
class IndustryProfile:
    key: str
    name: str
    template_type: str
    palettes: Tuple[ColorPalette, ...]
    typography: Tuple[Typography, ...]
    tone: str
    common_services: Tuple[str, ...]
    price_range: str
    seo_keywords: Tuple[str, ...]
    logo_styles: Tuple[str, ...]
    match_keywords: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def palette(self) -> ColorPalette:
        """Recommended (first) palette."""
        return self.palettes[0]

    @property
    def fonts(self) -> Typography:
        return self.typography[0]


INDUSTRIES: Dict[str, IndustryProfile] = {
    "restaurant": IndustryProfile(
        key="restaurant",
        name="Restaurant & Dining",
        template_type="restaurant",
        palettes=(
            ColorPalette("#C41E3A", "#2C1810", "#F4A460"),
            ColorPalette("#1E3A8A", "#FFF8DC", "#FF6B35"),
        ),
        typography=(Typography("Playfair Display", "Source Sans Pro"), Typography("Montserrat", "Open Sans")),
        tone="Warm, appetizing, and sensory. Emphasize freshness, quality ingredients, and the dining experience.",
        common_services=("Dine-in service", "Takeaway orders", "Delivery service", "Catering for events",
                         "Private dining room", "Breakfast/Brunch menu"),
        price_range="₪70-150 per person",
        seo_keywords=("restaurant tel aviv", "where to eat", "best restaurants", "food delivery",
                      "kosher restaurant", "business lunch", "מסעדה תל אביב"),
        logo_styles=("Classic emblem with fork and knife", "Modern minimalist with typography focus",
                     "Vintage badge design"),
        match_keywords=("restaurant", "food", "cafe", "bakery", "מסעדה", "בית קפה"),
    ),
    "beauty": IndustryProfile(
        key="beauty",
        name="Beauty & Wellness",
        template_type="beauty",
        palettes=(
            ColorPalette("#FF69B4", "#FFF5EE", "#C71585"),
            ColorPalette("#3CB371", "#F0FFF0", "#20B2AA"),
        ),
        typography=(Typography("Cormorant Garamond", "Lato"), Typography("Poppins", "Nunito")),
        tone="Soothing, confident, and empowering. Focus on transformation, self-care, and expertise.",
        common_services=("Haircuts & styling", "Hair coloring", "Manicure & pedicure", "Facial treatments",
                         "Eyelash extensions", "Bridal packages"),
        price_range="₪150-350",
        seo_keywords=("beauty salon tel aviv", "hair salon", "nail salon", "facial treatment",
                      "bridal makeup", "ספר תל אביב"),
        logo_styles=("Elegant script typography", "Minimalist beauty icon", "Floral or botanical elements"),
        match_keywords=("beauty", "salon", "spa", "hair", "nail", "barber", "ספר", "יופי", "קוסמטיקה"),
    ),
    "professional_services": IndustryProfile(
        key="professional_services",
        name="Professional Services",
        template_type="professional_services",
        palettes=(
            ColorPalette("#1E40AF", "#F3F4F6", "#10B981"),
            ColorPalette("#374151", "#F9FAFB", "#3B82F6"),
        ),
        typography=(Typography("Inter", "Inter"), Typography("Merriweather", "Lato")),
        tone="Professional, authoritative, and trustworthy. Emphasize expertise, results, and credentials.",
        common_services=("Business consulting", "Legal services", "Accounting & bookkeeping",
                         "Tax preparation", "Financial planning"),
        price_range="₪600-1,500 per hour",
        seo_keywords=("business consultant tel aviv", "legal services", "accounting firm",
                      "financial advisor", "tax consultant", "יועץ עסקי"),
        logo_styles=("Minimalist lettermark", "Abstract geometric shape", "Clean wordmark"),
        match_keywords=("consult", "law", "legal", "account", "office", "agency", "יועץ", "משרד"),
    ),
    "retail": IndustryProfile(
        key="retail",
        name="Retail & Shopping",
        template_type="retail",
        palettes=(
            ColorPalette("#F97316", "#FFF7ED", "#DC2626"),
            ColorPalette("#7C3AED", "#FAF5FF", "#EC4899"),
        ),
        typography=(Typography("Oswald", "Roboto"), Typography("Raleway", "Nunito")),
        tone="Exciting, trendy, and customer-focused. Use words like discover, exclusive, curated.",
        common_services=("In-store shopping", "Online ordering", "Home delivery", "Gift wrapping",
                         "Returns & exchanges"),
        price_range="₪100-500",
        seo_keywords=("shop tel aviv", "boutique", "clothing store", "home decor", "gift shop",
                      "חנות תל אביב"),
        logo_styles=("Modern shopping bag icon", "Stylized store name", "Boutique-style script"),
        match_keywords=("retail", "shop", "store", "boutique", "חנות"),
    ),
    "fitness": IndustryProfile(
        key="fitness",
        name="Fitness & Sports",
        template_type="fitness",
        palettes=(
            ColorPalette("#F97316", "#1F2937", "#10B981"),
            ColorPalette("#2563EB", "#F3F4F6", "#EF4444"),
        ),
        typography=(Typography("Bebas Neue", "Roboto"), Typography("Montserrat", "Open Sans")),
        tone="Motivational, energetic, and empowering. Focus on results and community.",
        common_services=("Group fitness classes", "Personal training", "Yoga classes", "Pilates",
                         "Spin classes", "Nutrition counseling"),
        price_range="₪300-600 monthly",
        seo_keywords=("gym tel aviv", "personal trainer", "yoga studio", "pilates", "crossfit",
                      "חדר כושר"),
        logo_styles=("Bold athletic typography", "Dumbbell or barbell icon", "Abstract motion design"),
        match_keywords=("fitness", "gym", "yoga", "pilates", "sport", "כושר", "חדר"),
    ),
    "tech": IndustryProfile(
        key="tech",
        name="Technology & Startups",
        template_type="tech",
        palettes=(
            ColorPalette("#3B82F6", "#F9FAFB", "#10B981"),
            ColorPalette("#8B5CF6", "#F5F3FF", "#06B6D4"),
        ),
        typography=(Typography("Space Grotesk", "Inter"), Typography("IBM Plex Sans", "IBM Plex Sans")),
        tone="Innovative, forward-thinking, and solution-oriented. Focus on problems solved and scalability.",
        common_services=("Software development", "Mobile app development", "Cloud solutions",
                         "UI/UX design", "Technical consulting"),
        price_range="₪500-1,000 per hour",
        seo_keywords=("software company tel aviv", "app development", "startup", "web development",
                      "cloud solutions", "פיתוח תוכנה"),
        logo_styles=("Abstract geometric mark", "Monospace wordmark", "Circuit-inspired icon"),
        match_keywords=("tech", "software", "startup", "development", "digital", "פיתוח", "הייטק"),
    ),
}

DEFAULT_INDUSTRY = "professional_services"

# Keyword precedence; professional services is matched last since its
# keywords ("office", "agency") are the most generic.
_MATCH_ORDER = ("restaurant", "beauty", "fitness", "retail", "tech", "professional_services")

# Exactly one supplementary asset set per template type
ASSET_KINDS = {
    "restaurant": "menu",
    "retail": "products",
    "fitness": "classes",
    "professional_services": "team",
    "beauty": "team",
    "tech": "team",
}


def classify_industry(category: str) -> IndustryProfile:
    """
    Classify a free-text category into an industry profile.

    Direct key match first, then keyword containment, then the professional services default.
    """
    normalized = (category or "").lower().strip()
    if normalized.replace(" ", "_") in INDUSTRIES:
        return INDUSTRIES[normalized.replace(" ", "_")]
    for key in _MATCH_ORDER:
        if any(word in normalized for word in INDUSTRIES[key].match_keywords):
            return INDUSTRIES[key]
    return INDUSTRIES[DEFAULT_INDUSTRY]


def asset_kind_for(template_type: str) -> str:
    return ASSET_KINDS.get(template_type, ASSET_KINDS[DEFAULT_INDUSTRY])


def industry_guidance(profile: IndustryProfile) -> str:
    """Prompt suffix carrying industry context."""
    return (
        f"\n\nINDUSTRY-SPECIFIC GUIDANCE ({profile.name}):\n"
        f"- Content Tone: {profile.tone}\n"
        f"- Common Services in this industry: {', '.join(profile.common_services[:5])}\n"
        f"- Typical Price Range: {profile.price_range}\n"
        f"- SEO Keywords to consider: {', '.join(profile.seo_keywords[:8])}\n"
        "Use this context to make the content more authentic and industry-appropriate."
    )
