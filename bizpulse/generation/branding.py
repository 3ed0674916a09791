"""
Deterministic vector placeholders for brand assets.

The placeholder is built locally from the business name and palette, so it
is always available even when the logo-brief stage fails.
"""
from typing import Optional
from urllib.parse import quote
from xml.sax.saxutils import escape

from bizpulse.models import BrandAssets, ColorPalette, LogoBrief, VectorPlaceholder

LOGO_STYLES = ("initials", "wordmark", "icon")

# encodeURIComponent leaves these unescaped; quotes are always escaped
_URI_SAFE = "-_.!~*()"


def get_initials(name: str) -> str:
    """First letters of the first two words, else the first two letters, upper-cased."""
    words = name.split()
    if len(words) >= 2:
        return (words[0][0] + words[1][0]).upper()
    return name.strip()[:2].upper()


def _initials_svg(initials: str, palette: ColorPalette) -> VectorPlaceholder:
    svg = f"""<svg width="200" height="200" viewBox="0 0 200 200" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="logoGradient" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{palette.primary};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{palette.accent};stop-opacity:1" />
    </linearGradient>
  </defs>
  <circle cx="100" cy="100" r="90" fill="url(#logoGradient)" />
  <text x="100" y="100" font-family="Arial, sans-serif" font-size="72" font-weight="bold"
        text-anchor="middle" dominant-baseline="central" fill="white">{escape(initials)}</text>
</svg>"""
    return VectorPlaceholder(svg=svg, style="initials", background_color=palette.primary, text_color="#FFFFFF")


def _wordmark_svg(name: str, palette: ColorPalette) -> VectorPlaceholder:
    font_size = max(24, min(48, 600 / max(len(name), 1)))
    svg = f"""<svg width="400" height="120" viewBox="0 0 400 120" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="textGradient" x1="0%" y1="0%" x2="100%" y2="0%">
      <stop offset="0%" style="stop-color:{palette.primary};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{palette.accent};stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="400" height="120" fill="white" />
  <rect x="20" y="50" width="4" height="20" fill="{palette.accent}" />
  <text x="35" y="70" font-family="Arial, Helvetica, sans-serif" font-size="{font_size:g}" font-weight="bold"
        fill="url(#textGradient)">{escape(name)}</text>
</svg>"""
    return VectorPlaceholder(svg=svg, style="wordmark", background_color="#FFFFFF", text_color=palette.primary)


def _icon_svg(initials: str, palette: ColorPalette) -> VectorPlaceholder:
    svg = f"""<svg width="200" height="200" viewBox="0 0 200 200" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="shapeGradient" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{palette.primary};stop-opacity:1" />
      <stop offset="50%" style="stop-color:{palette.accent};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{palette.secondary};stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="200" height="200" fill="white" />
  <polygon points="100,30 170,85 170,155 100,110 30,155 30,85" fill="url(#shapeGradient)" opacity="0.9" />
  <circle cx="100" cy="100" r="35" fill="white" opacity="0.3" />
  <text x="100" y="105" font-family="Arial, sans-serif" font-size="36" font-weight="bold"
        text-anchor="middle" dominant-baseline="central" fill="white">{escape(initials)}</text>
</svg>"""
    return VectorPlaceholder(svg=svg, style="icon", background_color="#FFFFFF", text_color=palette.primary)


def generate_placeholder(name: str, palette: ColorPalette, style: str = "initials") -> VectorPlaceholder:
    """
    Build an SVG placeholder logo.

    Args:
        name (str): Business name.
        palette (ColorPalette): Brand colors from the primary bundle.
        style (str): One of LOGO_STYLES; unknown styles render as an icon.

    Returns:
        VectorPlaceholder: The same inputs always give the same SVG.
    """
    if style == "initials":
        return _initials_svg(get_initials(name), palette)
    if style == "wordmark":
        return _wordmark_svg(name, palette)
    return _icon_svg(get_initials(name), palette)


def data_url(svg: str) -> str:
    """Inline an SVG as a data URL usable from HTML or CSS."""
    return f"data:image/svg+xml,{quote(svg, safe=_URI_SAFE)}"


def build_brand_assets(name: str, palette: ColorPalette, style: str = "initials",
                       brief: Optional[LogoBrief] = None) -> BrandAssets:
    return BrandAssets(placeholder=generate_placeholder(name, palette, style), brief=brief)
