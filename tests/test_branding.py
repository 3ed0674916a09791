from bizpulse.generation.branding import build_brand_assets, data_url, generate_placeholder, get_initials
from bizpulse.generation.industry import (
    INDUSTRIES,
    asset_kind_for,
    classify_industry,
    industry_guidance,
)
from bizpulse.models import ColorPalette, LogoBrief

PALETTE = ColorPalette("#C41E3A", "#2C1810", "#F4A460")


def test_initials_rule():
    assert get_initials("Cafe Noa") == "CN"
    assert get_initials("  studio   lev yoga ") == "SL"
    assert get_initials("Bezalel") == "BE"
    assert get_initials("") == ""


def test_placeholders_are_deterministic():
    first = generate_placeholder("Cafe Noa", PALETTE, "initials")
    second = generate_placeholder("Cafe Noa", PALETTE, "initials")

    assert first == second
    assert ">CN</text>" in first.svg
    assert "stop-color:#C41E3A" in first.svg and "stop-color:#F4A460" in first.svg
    assert first.background_color == "#C41E3A"
    assert first.text_color == "#FFFFFF"


def test_wordmark_font_size_is_clamped_and_name_escaped():
    short = generate_placeholder("Noa", PALETTE, "wordmark")
    long = generate_placeholder("Tel Aviv Mediterranean Kitchen & Bar", PALETTE, "wordmark")

    assert 'font-size="48"' in short.svg
    assert 'font-size="24"' in long.svg
    assert "Kitchen &amp; Bar" in long.svg
    assert long.style == "wordmark"


def test_icon_uses_three_stop_gradient():
    icon = generate_placeholder("Cafe Noa", PALETTE, "icon")

    assert 'points="100,30 170,85 170,155 100,110 30,155 30,85"' in icon.svg
    assert "stop-color:#2C1810" in icon.svg
    assert icon.style == "icon"


def test_data_url_escapes_quotes():
    url = data_url('<svg width="1"/>')

    assert url.startswith("data:image/svg+xml,")
    assert '"' not in url
    assert "%22" in url


def test_brand_assets_keep_brief():
    brief = LogoBrief("prompt", "modern", "reds", "a cup")

    assets = build_brand_assets("Cafe Noa", PALETTE, "initials", brief)

    assert assets.brief is brief
    assert assets.placeholder.style == "initials"


def test_classify_industry():
    assert classify_industry("restaurant").key == "restaurant"
    assert classify_industry("Professional Services").key == "professional_services"
    assert classify_industry("Neighborhood bakery").key == "restaurant"
    assert classify_industry("barber shop").key == "beauty"
    assert classify_industry("gift shop").key == "retail"
    assert classify_industry("marketing agency").key == "professional_services"
    assert classify_industry("מספרה ספר").key == "beauty"
    assert classify_industry("yoga studio").key == "fitness"
    assert classify_industry("something unusual").key == "professional_services"
    assert classify_industry("").key == "professional_services"


def test_exactly_one_asset_kind_per_template():
    kinds = {key: asset_kind_for(profile.template_type) for key, profile in INDUSTRIES.items()}

    assert kinds["restaurant"] == "menu"
    assert kinds["retail"] == "products"
    assert kinds["fitness"] == "classes"
    assert kinds["professional_services"] == "team"
    assert asset_kind_for("education") == "team"


def test_industry_guidance_mentions_tone_and_keywords():
    guidance = industry_guidance(INDUSTRIES["fitness"])

    assert "Fitness & Sports" in guidance
    assert "gym tel aviv" in guidance
