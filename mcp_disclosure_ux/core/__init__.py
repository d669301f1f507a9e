"""
Core - Domain logic and ports

This package contains:
- domain.py: Pure domain models
- periods.py: Reporting period sequence and label parsing
- errors.py: Failure kinds
- comparator.py: Period-over-period diff
- wire.py: Remote submission API record shape
- ports.py: Port interfaces (abstractions for external dependencies)
- services.py: Application services (use cases)
"""
from .domain import (
    DeadlineStatus,
    DisclosureRecord,
    FieldChange,
    PeriodComparison,
    PeriodDeadline,
    RenderedReport,
    ReportOptions,
    ResolvedDataset,
    SaveResult,
)
from .errors import (
    DisclosureError,
    InvalidPeriod,
    NotFound,
    PermissionViolation,
    RenderFailure,
    StorageFailure,
)
from .periods import PeriodLabel, PeriodSequence, parse_period_label, period_end_date
from .comparator import MatchKey, PeriodComparator
from .ports import DatasetRepository, ReportRenderer, SubmissionGateway
from .services import (
    AdminAggregator,
    DeadlineService,
    FallbackResolver,
    RecordStore,
    ReportService,
    SubmissionService,
)

__all__ = [
    # Domain models
    "DeadlineStatus",
    "DisclosureRecord",
    "FieldChange",
    "PeriodComparison",
    "PeriodDeadline",
    "RenderedReport",
    "ReportOptions",
    "ResolvedDataset",
    "SaveResult",
    # Errors
    "DisclosureError",
    "InvalidPeriod",
    "NotFound",
    "PermissionViolation",
    "RenderFailure",
    "StorageFailure",
    # Periods
    "PeriodLabel",
    "PeriodSequence",
    "parse_period_label",
    "period_end_date",
    # Comparison
    "MatchKey",
    "PeriodComparator",
    # Ports
    "DatasetRepository",
    "ReportRenderer",
    "SubmissionGateway",
    # Services
    "AdminAggregator",
    "DeadlineService",
    "FallbackResolver",
    "RecordStore",
    "ReportService",
    "SubmissionService",
]
