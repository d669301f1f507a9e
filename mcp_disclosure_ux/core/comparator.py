"""
Period Comparator

Field-level diff between the records of two reporting periods.
Linear scans throughout; datasets hold tens to low hundreds of rows.
"""
from enum import Enum
from typing import Any, Optional

from .domain import MONITORED_FIELDS, DisclosureRecord, FieldChange


class MatchKey(Enum):
    """How a current record is paired with a previous one"""
    NAME = "name"
    NAME_AND_REGISTRATION = "name+registration"


def display_value(value: Any) -> str:
    """Trimmed string form of a field value used for comparison"""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class PeriodComparator:
    """Compares a current dataset against the previous period's dataset"""

    def __init__(self, match_key: MatchKey = MatchKey.NAME_AND_REGISTRATION):
        self.match_key = match_key

    def key(self, record: DisclosureRecord) -> tuple[str, ...]:
        name = display_value(record.entity_name_english)
        if self.match_key is MatchKey.NAME:
            return (name,)
        return (name, display_value(record.commercial_registration_number))

    def match(
        self,
        record: DisclosureRecord,
        candidates: list[DisclosureRecord]
    ) -> Optional[DisclosureRecord]:
        """First candidate with the same key, or None"""
        key = self.key(record)
        for candidate in candidates:
            if self.key(candidate) == key:
                return candidate
        return None

    def diff_fields(
        self,
        current: list[DisclosureRecord],
        previous: list[DisclosureRecord]
    ) -> list[FieldChange]:
        """
        Per-field changes for every current record.

        Matched records yield one FieldChange per differing monitored field.
        Unmatched records yield a single "New Record" entry.
        """
        changes = []
        for record in current:
            entity_name = record.entity_name_english or "Unknown Entity"
            previous_record = self.match(record, previous)

            if previous_record is None:
                changes.append(FieldChange(
                    entity_name=entity_name,
                    field_label="New Record",
                    previous_value="(not existed)",
                    current_value="(new entity)",
                    change_type="Added"
                ))
                continue

            for attr, label in MONITORED_FIELDS:
                current_value = display_value(getattr(record, attr))
                previous_value = display_value(getattr(previous_record, attr))
                if current_value == previous_value:
                    continue

                if previous_value == "":
                    change_type = "Added"
                elif current_value == "":
                    change_type = "Removed"
                else:
                    change_type = "Modified"

                changes.append(FieldChange(
                    entity_name=entity_name,
                    field_label=label,
                    previous_value=previous_value,
                    current_value=current_value,
                    change_type=change_type
                ))
        return changes

    def find_deleted(
        self,
        current: list[DisclosureRecord],
        previous: list[DisclosureRecord]
    ) -> list[DisclosureRecord]:
        """Previous records with no match in current"""
        return [record for record in previous if self.match(record, current) is None]

    def has_new_records(
        self,
        current: list[DisclosureRecord],
        previous: list[DisclosureRecord]
    ) -> bool:
        """True if previous is empty or some current record is unmatched"""
        if not previous:
            return True
        return any(self.match(record, previous) is None for record in current)

    def ownership_changed(
        self,
        record: DisclosureRecord,
        previous: list[DisclosureRecord]
    ) -> bool:
        """True if record has a previous match with a different ownership %"""
        previous_record = self.match(record, previous)
        if previous_record is None:
            return False
        return display_value(record.ownership_percentage) != display_value(previous_record.ownership_percentage)
