"""
Domain Models - Pure business entities

No external dependencies. These represent the core business concepts.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional


ROLE_ADMIN = "Administrator"
ROLE_COMPANY = "Company"

REPORT_FULL_DATA = "full-data"
REPORT_CHANGE_TRACKING = "change-tracking"

SOURCE_ADMIN = "admin"
SOURCE_COMPANY = "company"
SOURCE_API = "api"

# The twelve business fields compared between periods, in report order
MONITORED_FIELDS = [
    ("entity_name_arabic", "Entity Name (Arabic)"),
    ("commercial_registration_number", "CR Number"),
    ("moi_number", "MOI Number"),
    ("country_of_incorporation", "Country"),
    ("ownership_percentage", "Ownership %"),
    ("acquisition_disposal_date", "Acquisition Date"),
    ("direct_parent_entity", "Direct Parent"),
    ("ultimate_parent_entity", "Ultimate Parent"),
    ("investment_relationship_type", "Investment Type"),
    ("ownership_structure", "Ownership Structure"),
    ("principal_activities", "Principal Activities"),
    ("currency", "Currency"),
]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class DisclosureRecord:
    """One entity's ownership disclosure for one reporting period"""
    entity_name_english: str
    id: Optional[str] = None
    asset_code: Optional[str] = None
    entity_name_arabic: Optional[str] = None
    commercial_registration_number: Optional[str] = None
    moi_number: Optional[str] = None
    country_of_incorporation: Optional[str] = None
    ownership_percentage: Optional[float] = None
    acquisition_disposal_date: Optional[str] = None  # YYYY-MM-DD
    direct_parent_entity: Optional[str] = None
    ultimate_parent_entity: Optional[str] = None
    investment_relationship_type: Optional[str] = None
    ownership_structure: Optional[str] = None
    principal_activities: Optional[str] = None
    currency: Optional[str] = None

    # Metadata
    is_modified: bool = False
    is_new_row: bool = True
    is_from_previous_quarter: bool = False
    previous_quarter_source: Optional[str] = None
    data_source: Optional[str] = None  # "admin", "company", "api", ...
    is_row_read_only: bool = False
    is_submitted: bool = False
    submitted_at: Optional[str] = None
    submitted_by: Optional[str] = None
    created_at: Optional[str] = None  # ISO timestamps, set by the store
    updated_at: Optional[str] = None

    def copy(self, **changes: Any) -> "DisclosureRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used on disk"""
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DisclosureRecord":
        """Build from a camelCase (or snake_case) dict, ignoring unknown keys"""
        values = {}
        for f in fields(cls):
            for key in (_camel(f.name), f.name):
                if key in data:
                    values[f.name] = data[key]
                    break
        values.setdefault("entity_name_english", "")
        return cls(**values)


@dataclass
class FieldChange:
    """One monitored field that differs between two periods"""
    entity_name: str
    field_label: str
    previous_value: str
    current_value: str
    change_type: str  # "Added", "Removed" or "Modified"


@dataclass
class ResolvedDataset:
    """Records a user should see for a period"""
    records: list[DisclosureRecord]
    is_from_previous_quarter: bool = False
    previous_quarter_source: Optional[str] = None


@dataclass
class SaveResult:
    """Outcome of a dataset save"""
    user: str
    period: str
    saved_count: int
    dropped_read_only: int = 0


@dataclass
class PeriodComparison:
    """Current and previous datasets for one report"""
    current_period: str
    previous_period: Optional[str]
    current: list[DisclosureRecord] = field(default_factory=list)
    previous: list[DisclosureRecord] = field(default_factory=list)


@dataclass
class ReportOptions:
    """What report to build, and for whom"""
    role: str  # ROLE_ADMIN or ROLE_COMPANY
    username: str
    current_period: str
    include_all_companies: bool = False
    target_company: Optional[str] = None
    report_type: str = REPORT_CHANGE_TRACKING
    # None means: on for full-data reports, off for change-tracking reports
    highlight_ownership_changes: Optional[bool] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_consolidated(self) -> bool:
        return self.is_admin and self.include_all_companies

    def ownership_highlighting(self) -> bool:
        if self.highlight_ownership_changes is not None:
            return self.highlight_ownership_changes
        return self.report_type == REPORT_FULL_DATA


@dataclass
class RenderedReport:
    """A finished workbook and the name to deliver it under"""
    filename: str
    content: bytes
    sheet_names: list[str] = field(default_factory=list)


@dataclass
class PeriodDeadline:
    """Submission deadline for one reporting period"""
    year: int
    time_period: str  # one of the period names, e.g. "Third Quarter"
    dead_line: str  # ISO date or timestamp as held by the submission API

    @property
    def label(self) -> str:
        return f"{self.time_period} {self.year}"

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "time_period": self.time_period, "dead_line": self.dead_line}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PeriodDeadline":
        return cls(year=int(data["year"]), time_period=str(data["time_period"]), dead_line=str(data["dead_line"]))


@dataclass
class DeadlineStatus:
    """A deadline seen from a point in time"""
    deadline: PeriodDeadline
    status: str  # "future", "upcoming", "urgent" or "expired"
    days_remaining: int
    time_remaining: str
