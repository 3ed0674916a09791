"""
Content validation: a fixed rubric of field checks and point penalties.

`validate` is pure. The same bundle always produces the same result, and
quality problems are returned as data, never raised.
"""
import re
from typing import List, Optional, Tuple

from bizpulse.models import (
    ColorPalette,
    GeneratedContentBundle,
    Offering,
    Severity,
    Typography,
    ValidationIssue,
    ValidationResult,
)

HEX_COLOR = re.compile(r"^#[A-Fa-f0-9]{6}$")
GENERIC_PHRASES = ("welcome to", "home of", "official website")
OFFENSIVE_WORDS = ("damn", "hell", "crap", "suck")
BLOCKING_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)

# (errors, warnings, penalty points)
CheckResult = Tuple[List[ValidationIssue], List[ValidationIssue], int]


def _error(field: str, message: str, severity: Severity) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=severity)


def _warning(field: str, message: str, recommendation: str) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.LOW, recommendation=recommendation)


def check_hero_title(title: str, business_name: str) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    title = title or ""
    if not title:
        errors.append(_error("heroTitle", "Hero title is empty", Severity.CRITICAL))
        penalty += 30
    elif len(title) > 80:
        warnings.append(_warning("heroTitle", "Hero title is too long (>80 chars). Ideal: 40-60 characters.",
                                 "Shorten to improve readability and mobile display."))
        penalty += 5
    elif len(title) < 20:
        warnings.append(_warning("heroTitle", "Hero title is very short (<20 chars). Consider adding more context.",
                                 "Aim for 40-60 characters for optimal impact."))
        penalty += 3

    if title.lower() == (business_name or "").lower():
        warnings.append(_warning("heroTitle", "Hero title is just the business name without added value.",
                                 "Add a compelling benefit or unique value proposition."))
        penalty += 10

    if any(phrase in title.lower() for phrase in GENERIC_PHRASES):
        warnings.append(_warning("heroTitle", "Hero title uses generic phrases.",
                                 "Use more compelling, benefit-focused language."))
        penalty += 5
    return errors, warnings, penalty


def check_hero_subtitle(subtitle: str) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    subtitle = subtitle or ""
    if not subtitle:
        errors.append(_error("heroSubtitle", "Hero subtitle is empty", Severity.HIGH))
        penalty += 20
    elif len(subtitle) > 150:
        warnings.append(_warning("heroSubtitle", "Hero subtitle is too long (>150 chars). Ideal: 80-120 characters.",
                                 "Condense for better readability."))
        penalty += 5
    elif len(subtitle) < 30:
        warnings.append(_warning("heroSubtitle", "Hero subtitle is very short. Add more context.",
                                 "Aim for 80-120 characters."))
        penalty += 3
    return errors, warnings, penalty


def check_narrative(narrative: str) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    if not narrative:
        errors.append(_error("aboutContent", "About content is empty", Severity.CRITICAL))
        return errors, warnings, 30

    word_count = len(re.split(r"\s+", narrative))
    if word_count < 100:
        warnings.append(_warning("aboutContent",
                                 f"About content is too short ({word_count} words). Recommended: 150-300 words.",
                                 "Add more details about the business story, values, and benefits."))
        penalty += 10
    elif word_count > 500:
        warnings.append(_warning("aboutContent",
                                 f"About content is too long ({word_count} words). Users may not read it all.",
                                 "Condense to 150-300 words focusing on key points."))
        penalty += 5

    paragraphs = [p for p in narrative.split("\n\n") if p.strip()]
    if len(paragraphs) < 2:
        warnings.append(_warning("aboutContent",
                                 "About content should have multiple paragraphs for better readability.",
                                 "Break into 2-3 focused paragraphs."))
        penalty += 5
    return errors, warnings, penalty


def check_offerings(offerings: List[Offering]) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    if not offerings:
        errors.append(_error("services", "No services defined", Severity.CRITICAL))
        return errors, warnings, 30

    if len(offerings) < 3:
        warnings.append(_warning("services", f"Only {len(offerings)} service(s). Recommended: 4-8 services.",
                                 "Add more services to provide comprehensive offerings."))
        penalty += 10
    elif len(offerings) > 12:
        warnings.append(_warning("services", f"Too many services ({len(offerings)}). May overwhelm visitors.",
                                 "Focus on 4-8 key services or group similar ones."))
        penalty += 5

    for i, offering in enumerate(offerings):
        if not offering.name:
            errors.append(_error(f"services[{i}].name", "Service name is empty", Severity.HIGH))
            penalty += 5
        if len(offering.description or "") < 20:
            warnings.append(_warning(f"services[{i}].description", "Service description is too short or missing.",
                                     "Add 30-50 words describing benefits and details."))
            penalty += 3
        if not offering.price:
            warnings.append(_warning(f"services[{i}].price", "Service has no pricing information.",
                                     'Add price, price range, or "Contact for quote".'))
            penalty += 2
    return errors, warnings, penalty


def check_seo(title: str, description: str, keywords: List[str]) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    title, description = title or "", description or ""

    if not title:
        errors.append(_error("seoTitle", "SEO title is empty", Severity.CRITICAL))
        penalty += 20
    elif len(title) > 60:
        warnings.append(_warning("seoTitle", f"SEO title is too long ({len(title)} chars). Google truncates at ~60.",
                                 "Shorten to 50-60 characters."))
        penalty += 10
    elif len(title) < 30:
        warnings.append(_warning("seoTitle", "SEO title is short. Could be more descriptive.",
                                 "Aim for 50-60 characters with keywords."))
        penalty += 5

    if not description:
        errors.append(_error("seoDescription", "SEO description is empty", Severity.HIGH))
        penalty += 15
    elif len(description) > 160:
        warnings.append(_warning("seoDescription",
                                 f"SEO description is too long ({len(description)} chars). Google truncates at ~160.",
                                 "Shorten to 150-160 characters."))
        penalty += 10
    elif len(description) < 100:
        warnings.append(_warning("seoDescription", "SEO description is short. Could provide more context.",
                                 "Aim for 150-160 characters."))
        penalty += 5

    if not keywords:
        warnings.append(_warning("keywords", "No SEO keywords defined.", "Add 5-10 relevant keywords."))
        penalty += 10
    elif len(keywords) < 5:
        warnings.append(_warning("keywords", f"Only {len(keywords)} keywords. Recommended: 5-10.",
                                 "Add more relevant keywords for better SEO."))
        penalty += 5
    return errors, warnings, penalty


def is_hex_color(value: Optional[str]) -> bool:
    return bool(value) and HEX_COLOR.match(value) is not None


def check_design(palette: Optional[ColorPalette], typography: Optional[Typography]) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    if palette is None:
        errors.append(_error("colorPalette", "Color palette is missing", Severity.HIGH))
        penalty += 15
    else:
        for role in ("primary", "secondary", "accent"):
            if not is_hex_color(getattr(palette, role)):
                errors.append(_error(f"colorPalette.{role}", f"{role.capitalize()} color is not a valid hex color",
                                     Severity.MEDIUM))
                penalty += 10

    if typography is None:
        errors.append(_error("typography", "Typography is missing", Severity.MEDIUM))
        penalty += 10
    else:
        if not typography.heading:
            errors.append(_error("typography.heading", "Heading font is missing", Severity.MEDIUM))
            penalty += 5
        if not typography.body:
            errors.append(_error("typography.body", "Body font is missing", Severity.MEDIUM))
            penalty += 5
    return errors, warnings, penalty


def check_overall_quality(bundle: GeneratedContentBundle, business_name: str) -> CheckResult:
    errors, warnings, penalty = [], [], 0
    all_text = f"{bundle.hero_title} {bundle.hero_subtitle} {bundle.narrative}".lower()

    for word in OFFENSIVE_WORDS:
        if word in all_text:
            errors.append(_error("content", f'Potentially inappropriate language detected: "{word}"', Severity.HIGH))
            penalty += 20

    if (business_name or "").lower() not in all_text:
        warnings.append(_warning("content", "Business name not prominently featured in content.",
                                 "Ensure business name appears in hero or about section."))
        penalty += 5

    if not bundle.template_type:
        warnings.append(_warning("templateType", "Template type not specified.",
                                 "Specify appropriate template for industry."))
        penalty += 5
    return errors, warnings, penalty


def _suggestions(warning_count: int, score: int) -> List[str]:
    suggestions = []
    if warning_count:
        suggestions.append(f"Found {warning_count} warnings that could improve content quality.")
    if score >= 90:
        suggestions.append("Excellent content quality! Ready for deployment.")
    elif score >= 75:
        suggestions.append("Good quality with minor improvements recommended.")
    elif score >= 60:
        suggestions.append("Acceptable quality but consider regenerating for better results.")
    else:
        suggestions.append("Content needs significant improvement. Consider regenerating.")
    return suggestions


def validate(bundle: GeneratedContentBundle, business_name: str) -> ValidationResult:
    """
    Score a primary content bundle against the rubric.

    Args:
        bundle (GeneratedContentBundle): Bundle to grade.
        business_name (str): Name the content is expected to feature.

    Returns:
        ValidationResult: `score = max(0, 100 - total penalty)`; `is_valid` is False
        when any error is critical or high.
    """
    checks = [
        check_hero_title(bundle.hero_title, business_name),
        check_hero_subtitle(bundle.hero_subtitle),
        check_narrative(bundle.narrative),
        check_offerings(bundle.offerings),
        check_seo(bundle.seo_title, bundle.seo_description, bundle.keywords),
        check_design(bundle.color_palette, bundle.typography),
        check_overall_quality(bundle, business_name),
    ]
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    penalty = 0
    for check_errors, check_warnings, points in checks:
        errors.extend(check_errors)
        warnings.extend(check_warnings)
        penalty += points

    score = max(0, 100 - penalty)
    return ValidationResult(
        is_valid=not any(e.severity in BLOCKING_SEVERITIES for e in errors),
        score=score,
        errors=errors,
        warnings=warnings,
        suggestions=_suggestions(len(warnings), score),
    )


class ContentValidator:
    """Injectable wrapper so the orchestrator can be handed a different rubric."""

    def validate(self, bundle: GeneratedContentBundle, business_name: str) -> ValidationResult:
        return validate(bundle, business_name)


def check_price_realism(price: str, category: str) -> Tuple[bool, str]:
    """
    Sanity-check a price string against local market ranges.

    Only restaurant/cafe and beauty/salon categories have ranges; descriptive
    prices ("Contact for quote") are always accepted.
    """
    match = re.search(r"\d+", price or "")
    if not match:
        return True, "Price is descriptive (not numeric)"
    amount = int(match.group(0))
    category = (category or "").lower()

    if "restaurant" in category or "cafe" in category:
        if amount < 20:
            return False, "Price seems too low for a restaurant. Typical: ₪40-150."
        if amount > 500:
            return False, "Price seems very high. Confirm for fine dining."
    if "beauty" in category or "salon" in category:
        if amount < 50:
            return False, "Price seems too low for beauty services. Typical: ₪80-350."
        if amount > 1000:
            return False, "Price seems very high. Confirm for luxury treatments."
    return True, "Price appears reasonable"


def format_validation_report(result: ValidationResult) -> str:
    lines = [
        "=== CONTENT VALIDATION REPORT ===",
        "",
        f"Overall Score: {result.score}/100",
        f"Status: {'✓ VALID' if result.is_valid else '✗ INVALID'}",
        "",
    ]
    if result.errors:
        lines.append(f"ERRORS ({len(result.errors)}):")
        for i, error in enumerate(result.errors, 1):
            lines.append(f"{i}. [{error.severity.value.upper()}] {error.field}: {error.message}")
        lines.append("")
    if result.warnings:
        lines.append(f"WARNINGS ({len(result.warnings)}):")
        for i, warning in enumerate(result.warnings, 1):
            lines.append(f"{i}. {warning.field}: {warning.message}")
            lines.append(f"   → {warning.recommendation}")
        lines.append("")
    if result.suggestions:
        lines.append("SUGGESTIONS:")
        for i, suggestion in enumerate(result.suggestions, 1):
            lines.append(f"{i}. {suggestion}")
    return "\n".join(lines) + "\n"
