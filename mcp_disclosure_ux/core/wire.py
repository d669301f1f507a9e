"""
Wire format for the remote submission API

Maps DisclosureRecord to and from the API's snake_case investment shape,
translating the two controlled vocabularies on the way.
"""
from typing import Any, Optional

from .domain import SOURCE_API, DisclosureRecord

# Outbound: internal value -> API value. Unlisted values pass through.
RELATIONSHIP_TO_API = {
    "Joint venture": "JV",
}
OWNERSHIP_STRUCTURE_TO_API = {
    "Direct to PIF": "Direct",
    "Direct": "Direct",
    "In-direct": "Indirect",
    "Indirect": "Indirect",
}

# Inbound: API value -> canonical internal value
RELATIONSHIP_FROM_API = {
    "JV": "Joint venture",
}
OWNERSHIP_STRUCTURE_FROM_API = {
    "Direct": "Direct to PIF",
    "Indirect": "In-direct",
}


def _translate(value: Optional[str], mapping: dict[str, str]) -> Optional[str]:
    if not value:
        return None
    return mapping.get(value, value)


def relationship_to_api(value: Optional[str]) -> Optional[str]:
    return _translate(value, RELATIONSHIP_TO_API)


def relationship_from_api(value: Optional[str]) -> Optional[str]:
    return _translate(value, RELATIONSHIP_FROM_API)


def ownership_structure_to_api(value: Optional[str]) -> Optional[str]:
    return _translate(value, OWNERSHIP_STRUCTURE_TO_API)


def ownership_structure_from_api(value: Optional[str]) -> Optional[str]:
    return _translate(value, OWNERSHIP_STRUCTURE_FROM_API)


def to_wire(record: DisclosureRecord, year: int, time_period: str) -> dict[str, Any]:
    """
    Build a draft-save payload for one record.

    The id is only sent for rows that already exist remotely (numeric id,
    not a new row). Submission state and audit fields are owned by the API.
    """
    payload: dict[str, Any] = {}
    if record.id and not record.is_new_row and str(record.id).isdigit():
        payload["id"] = int(record.id)

    payload.update({
        "year": year,
        "time_period": time_period,
        "asset_code": record.asset_code or None,
        "entity_name": record.entity_name_english,
        "arabic_legal_name": record.entity_name_arabic or None,
        "commercial_registration_number": record.commercial_registration_number or None,
        "moi_number": record.moi_number or None,
        "country_of_incorporation": record.country_of_incorporation or None,
        "ownership_percentage": record.ownership_percentage,
        "acquisition_disposal_date": record.acquisition_disposal_date or None,
        "direct_parent": record.direct_parent_entity or None,
        "ultimate_parent": record.ultimate_parent_entity or None,
        "relationship_of_investment": relationship_to_api(record.investment_relationship_type),
        "direct_or_indirect": ownership_structure_to_api(record.ownership_structure),
        "entities_principal_activities": record.principal_activities or None,
        "currency": record.currency or None,
    })
    return payload


def from_wire(item: dict[str, Any]) -> DisclosureRecord:
    """Build a record from one API investment; submitted rows are read-only"""
    is_submitted = bool(item.get("is_submitted", False))
    submitted_by = item.get("submitted_by")
    raw_id = item.get("id")

    return DisclosureRecord(
        id=str(raw_id) if raw_id is not None else None,
        asset_code=item.get("asset_code"),
        entity_name_english=item.get("entity_name") or "",
        entity_name_arabic=item.get("arabic_legal_name"),
        commercial_registration_number=item.get("commercial_registration_number"),
        moi_number=item.get("moi_number"),
        country_of_incorporation=item.get("country_of_incorporation"),
        ownership_percentage=item.get("ownership_percentage"),
        acquisition_disposal_date=item.get("acquisition_disposal_date"),
        direct_parent_entity=item.get("direct_parent"),
        ultimate_parent_entity=item.get("ultimate_parent"),
        investment_relationship_type=relationship_from_api(item.get("relationship_of_investment")),
        ownership_structure=ownership_structure_from_api(item.get("direct_or_indirect")),
        principal_activities=item.get("entities_principal_activities"),
        currency=item.get("currency"),
        is_modified=False,
        is_new_row=False,
        is_from_previous_quarter=False,
        data_source=SOURCE_API,
        is_row_read_only=is_submitted,
        is_submitted=is_submitted,
        submitted_at=item.get("submitted_at"),
        submitted_by=str(submitted_by) if submitted_by is not None else None,
        created_at=item.get("created_at"),
        updated_at=item.get("updated_at"),
    )
