"""
Normalization of raw registry records into NormalizedBusiness.

Registry records key the same concept inconsistently: native-language keys,
transliterated keys and English keys all occur, sometimes in one dataset.
"""
from typing import Any, Optional

from bizpulse.config import DEFAULT_CITY
from bizpulse.errors import SkippedRecordError
from bizpulse.models import ExternalBusinessRecord, NormalizedBusiness

DEFAULT_CATEGORY = "professional services"

FIELD_ALIASES = {
    "identifier": ("_id", "license_number", "mosad_yeshut", "ObjectId"),
    "name": ("שם_עסק", "shem_esek", "business_name", "business_name_en", "name"),
    "category": ("תיאור_עסק", "business_type_desc", "סוג_עסק", "sug_esek", "business_type", "category"),
    "street": ("רחוב", "street", "shder_rchov"),
    "house_number": ("מספר_בית", "house_number"),
    "address": ("address",),
    "city": ("city", "עיר"),
    "neighborhood": ("שכונה", "neighborhood"),
    "status": ("סטטוס", "status", "status_ishur"),
    "registration_date": ("תאריך_הנפקה", "issue_date", "taarich_rish_rishum"),
    "owner": ("שם_בעל_רישיון", "owner_name"),
    "phone": ("טלפון", "phone"),
    "email": ("email", "דואל"),
    "website": ("website", "אתר"),
    "description": ("description",),
    "employees": ("מספר_עובדים", "employees"),
    "company_id": ("מספר_חברה", "company_id", "company_number"),
}


def pick(record: ExternalBusinessRecord, concept: str) -> Optional[Any]:
    """First non-empty value among the aliases for `concept`."""
    for key in FIELD_ALIASES[concept]:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def map_status(raw: Optional[str]) -> str:
    """Map a registry status string onto active | expired | suspended."""
    status = (raw or "").lower()
    if "inactive" in status or "לא פעיל" in status:
        return "suspended"
    if "פעיל" in status or "active" in status:
        return "active"
    if "פקע" in status or "expired" in status:
        return "expired"
    return "suspended"


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_record(record: ExternalBusinessRecord, identifier: Optional[str] = None) -> NormalizedBusiness:
    """
    Build the canonical business shape from a raw registry record.

    Args:
        record: Raw registry record.
        identifier: Identifier the record was requested under, if known.

    Returns:
        NormalizedBusiness: `name` and `category` are always present.

    Raises:
        SkippedRecordError: If the record carries no business name.
    """
    name = pick(record, "name")
    if not name:
        raise SkippedRecordError("Missing business name")

    address = pick(record, "address")
    if not address:
        street = pick(record, "street") or ""
        number = pick(record, "house_number") or ""
        address = f"{street} {number}".strip()

    raw_status = pick(record, "status")
    return NormalizedBusiness(
        identifier=str(identifier or pick(record, "identifier") or ""),
        name=str(name),
        category=str(pick(record, "category") or DEFAULT_CATEGORY),
        address=str(address),
        city=str(pick(record, "city") or DEFAULT_CITY),
        phone=pick(record, "phone"),
        email=pick(record, "email"),
        website=pick(record, "website"),
        description=pick(record, "description"),
        employees=_as_int(pick(record, "employees")),
        status=map_status(raw_status) if raw_status else "active",
        registration_date=pick(record, "registration_date"),
        neighborhood=pick(record, "neighborhood"),
        owner=pick(record, "owner"),
        company_id=str(pick(record, "company_id")) if pick(record, "company_id") else None,
    )


def screen_business(business: NormalizedBusiness) -> None:
    """
    Reject businesses whose licence is not active.

    Raises:
        SkippedRecordError: For expired or suspended licences.
    """
    if business.status == "expired":
        raise SkippedRecordError("Business licence has expired")
    if business.status == "suspended":
        raise SkippedRecordError("Business is inactive")
