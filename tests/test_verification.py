import pytest
from unittest.mock import AsyncMock, MagicMock

from bizpulse.errors import TransientError
from bizpulse.models import NormalizedBusiness
from bizpulse.verifiers.fuzzy import best_match, names_match
from bizpulse.verifiers.legal_source import LegalRegistrySource
from bizpulse.verifiers.location_source import LocationSource
from bizpulse.verifiers.registry_source import MunicipalRegistrySource
from bizpulse.verifiers.verification_engine import VerificationEngine, build_sources

ACTIVE_RECORD = {
    "_id": "1001",
    "שם_עסק": "Cafe Noa",
    "תיאור_עסק": "cafe",
    "רחוב": "Dizengoff",
    "מספר_בית": "120",
    "סטטוס": "פעיל",
}

BUSINESS = NormalizedBusiness(
    identifier="1001",
    name="Cafe Noa",
    category="cafe",
    address="Dizengoff 120",
    city="Tel Aviv-Yafo",
    company_id="515000001",
)


def make_registry(record=ACTIVE_RECORD, error=None):
    registry = MagicMock()
    registry.fetch_record = AsyncMock(return_value=record, side_effect=error)
    return registry


def make_companies(records=None, error=None):
    companies = MagicMock()
    companies.find_companies = AsyncMock(return_value=records or [], side_effect=error)
    return companies


def make_places(results=None, error=None):
    places = MagicMock()
    places.search = AsyncMock(return_value=results or [], side_effect=error)
    return places


REGISTERED_COMPANY = {"שם חברה": "Cafe Noa Ltd", "סטטוס חברה": "פעילה", "מספר חברה": "515000001"}
OPERATING_PLACE = {
    "name": "Cafe Noa",
    "formatted_address": "Dizengoff St 120, Tel Aviv-Yafo, Israel",
    "place_id": "ChIJ-noa",
    "business_status": "OPERATIONAL",
}


def assert_score_invariants(result):
    assert 0 <= result.trust_score <= 100
    assert result.verified == (result.trust_score >= 70)


@pytest.mark.asyncio
async def test_primary_registry_only_scores_40_and_is_not_verified():
    engine = VerificationEngine(build_sources(make_registry()))

    result = await engine.verify("1001")

    assert result.trust_score == 40
    assert result.verified is False
    assert [s.source_id for s in result.sources] == ["municipal_registry"]
    assert result.sources[0].verification_url.endswith("/1001")
    assert result.source_outcomes == {
        "municipal_registry": "passed",
        "companies_registry": "not_configured",
        "google_places": "not_configured",
    }
    assert_score_invariants(result)


@pytest.mark.asyncio
async def test_all_sources_passing_scores_100_and_verifies():
    engine = VerificationEngine(build_sources(
        make_registry(),
        make_companies([REGISTERED_COMPANY]),
        make_places([OPERATING_PLACE]),
    ))

    result = await engine.verify("1001", BUSINESS)

    assert result.trust_score == 100
    assert result.verified is True
    assert {s.status for s in result.sources} == {"verified_active", "verified_registered", "location_verified"}
    assert "place_id:ChIJ-noa" in [s for s in result.sources if s.source_id == "google_places"][0].verification_url
    assert_score_invariants(result)


@pytest.mark.asyncio
async def test_every_source_throwing_yields_empty_result_without_raising():
    engine = VerificationEngine(build_sources(
        make_registry(error=TransientError("registry down")),
        make_companies(error=TransientError("companies down")),
        make_places(error=RuntimeError("quota")),
    ))

    result = await engine.verify("1001", BUSINESS)

    assert result.sources == []
    assert result.trust_score == 0
    assert result.verified is False
    assert set(result.source_outcomes.values()) == {"error"}


@pytest.mark.asyncio
async def test_failing_source_is_omitted_but_others_still_count():
    engine = VerificationEngine(build_sources(
        make_registry(),
        make_companies(error=TransientError("companies down")),
        make_places([OPERATING_PLACE]),
    ))

    result = await engine.verify("1001", BUSINESS)

    assert result.trust_score == 70
    assert result.verified is True
    assert result.source_outcomes["companies_registry"] == "error"
    assert_score_invariants(result)


@pytest.mark.asyncio
async def test_inactive_registry_status_contributes_nothing():
    record = {**ACTIVE_RECORD, "סטטוס": "לא פעיל"}
    engine = VerificationEngine(build_sources(make_registry(record)))

    result = await engine.verify("1001")

    assert result.trust_score == 0
    assert result.source_outcomes["municipal_registry"] == "failed_check"


@pytest.mark.asyncio
async def test_business_context_is_derived_from_registry_payload():
    places = make_places([OPERATING_PLACE])
    engine = VerificationEngine(build_sources(make_registry(), None, places))

    result = await engine.verify("1001")

    assert result.trust_score == 70
    query = places.search.await_args.args[0]
    assert "Cafe Noa" in query and "Dizengoff 120" in query


@pytest.mark.asyncio
async def test_inactive_record_still_gives_context_to_other_sources():
    record = {**ACTIVE_RECORD, "סטטוס": "לא פעיל"}
    places = make_places([OPERATING_PLACE])
    engine = VerificationEngine(build_sources(make_registry(record), None, places))

    result = await engine.verify("1001")

    assert places.search.await_count == 1
    assert result.trust_score == 30
    assert result.verified is False
    assert result.source_outcomes == {
        "municipal_registry": "failed_check",
        "companies_registry": "not_configured",
        "google_places": "passed",
    }
    assert_score_invariants(result)


@pytest.mark.asyncio
async def test_prefetched_registry_record_is_not_fetched_again():
    registry = make_registry()
    places = make_places([OPERATING_PLACE])
    engine = VerificationEngine(build_sources(registry, None, places))

    result = await engine.verify("1001", registry_record=ACTIVE_RECORD)

    registry.fetch_record.assert_not_called()
    assert result.trust_score == 70
    assert result.source_outcomes["municipal_registry"] == "passed"


@pytest.mark.asyncio
async def test_context_sources_are_skipped_without_business():
    engine = VerificationEngine(build_sources(make_registry(None), make_companies([REGISTERED_COMPANY])))

    result = await engine.verify("1001")

    assert result.trust_score == 0
    assert result.source_outcomes["municipal_registry"] == "failed_check"
    assert result.source_outcomes["companies_registry"] == "no_context"


@pytest.mark.asyncio
async def test_empty_identifier_raises_before_any_source():
    registry = make_registry()
    engine = VerificationEngine(build_sources(registry))

    with pytest.raises(ValueError):
        await engine.verify("  ")
    registry.fetch_record.assert_not_called()


@pytest.mark.asyncio
async def test_legal_source_accepts_exact_company_number_with_different_name():
    company = {"שם חברה": "N.O.A Holdings", "סטטוס חברה": "פעילה", "מספר חברה": "515000001"}
    source = LegalRegistrySource(make_companies([company]))

    check = await source.check("1001", BUSINESS)

    assert check is not None
    assert check.verification_url.endswith("companyNumber=515000001")


@pytest.mark.asyncio
async def test_legal_source_rejects_dissolved_company():
    company = {**REGISTERED_COMPANY, "סטטוס חברה": "מחוקה"}
    source = LegalRegistrySource(make_companies([company]))

    assert await source.check("1001", BUSINESS) is None


@pytest.mark.asyncio
async def test_location_source_rejects_closed_place():
    place = {**OPERATING_PLACE, "business_status": "CLOSED_PERMANENTLY"}
    source = LocationSource(make_places([place]))

    assert await source.check("1001", BUSINESS) is None


@pytest.mark.asyncio
async def test_registry_source_missing_record_returns_none():
    source = MunicipalRegistrySource(make_registry(None))

    assert await source.check("404", None) is None


def test_best_match_picks_closest_candidate_above_threshold():
    candidates = [
        {"name": "Other Place", "formatted_address": "Herzl 1, Haifa"},
        OPERATING_PLACE,
    ]

    assert best_match("Cafe Noa", "Dizengoff 120", candidates) is OPERATING_PLACE
    assert best_match("Cafe Noa", "Dizengoff 120", candidates[:1]) is None


def test_names_match_ignores_case_and_extra_tokens():
    assert names_match("Cafe Noa", "CAFE NOA LTD")
    assert not names_match("Cafe Noa", "")
