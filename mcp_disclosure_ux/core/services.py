"""
Application Services - Use cases that orchestrate domain logic

These are the entry points to the core. They coordinate between
domain models and ports, but contain no infrastructure concerns.
"""
import json
import logging
import uuid
from dataclasses import fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from .comparator import PeriodComparator
from .domain import (
    REPORT_FULL_DATA,
    SOURCE_ADMIN,
    SOURCE_COMPANY,
    DeadlineStatus,
    DisclosureRecord,
    PeriodComparison,
    PeriodDeadline,
    RenderedReport,
    ReportOptions,
    ResolvedDataset,
    SaveResult,
)
from .errors import InvalidPeriod, NotFound, StorageFailure
from .periods import PERIOD_NAMES, PeriodSequence, parse_period_label
from .ports import DatasetRepository, ReportRenderer, SubmissionGateway
from .wire import from_wire, to_wire

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Fields callers may not set through update_row
_STORE_OWNED = {"id", "created_at", "updated_at", "is_modified"}
_RECORD_FIELDS = {f.name for f in fields(DisclosureRecord)}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class RecordStore:
    """Use case: Read and write each user's per-period datasets"""

    def __init__(self, repository: DatasetRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock
        self._last_stamp: Optional[datetime] = None

    def stamp(self) -> str:
        """Current time as ISO string, never earlier than the previous stamp"""
        now = self.clock()
        if self._last_stamp is not None and now < self._last_stamp:
            now = self._last_stamp
        self._last_stamp = now
        return now.isoformat()

    def load(self, user: str, period: str) -> list[DisclosureRecord]:
        """Stored records for (user, period), empty if nothing was saved"""
        return [DisclosureRecord.from_dict(row) for row in self.repository.get(user, period)]

    def save(self, user: str, period: str, records: list[DisclosureRecord]) -> SaveResult:
        """
        Replace the dataset for (user, period).

        Read-only records belong to someone else and are dropped, not saved.
        The number dropped is returned so callers can surface it.
        """
        stamp = self.stamp()
        stored_created = {row.get("id"): row.get("createdAt") for row in self.repository.get(user, period)}
        rows = []
        seen_ids = set()
        dropped = 0

        for record in records:
            if record.is_row_read_only:
                dropped += 1
                continue

            record_id = record.id
            if not record_id or record_id in seen_ids:
                record_id = new_id()
            seen_ids.add(record_id)

            # Timestamps are store-owned; callers cannot set them
            created_at = stored_created.get(record_id) or stamp
            updated_at = max(stamp, created_at)
            rows.append(record.copy(id=record_id, created_at=created_at, updated_at=updated_at).to_dict())

        self.repository.put(user, period, rows, mark=stamp)

        if dropped:
            logger.warning(f"save: dropped {dropped} read-only record(s) for {user} / {period}")
        logger.info(f"save: {len(rows)} record(s) for {user} / {period}")

        return SaveResult(user=user, period=period, saved_count=len(rows), dropped_read_only=dropped)

    def has_saved(self, user: str, period: str) -> bool:
        return self.repository.get_mark(user, period) is not None

    def mark_saved(self, user: str, period: str) -> None:
        """Set the save mark without touching records (back-fill for old data)"""
        if not self.has_saved(user, period):
            self.repository.put_mark(user, period, self.stamp())

    def reset_marks(self) -> None:
        self.repository.clear_marks()

    def list_users(self) -> list[str]:
        return self.repository.list_users()

    def list_periods(self, user: str) -> list[tuple[str, int]]:
        return self.repository.list_periods(user)

    def add_row(self, user: str, period: str, record: DisclosureRecord) -> DisclosureRecord:
        """Append a new record and return it as stored"""
        new_record = record.copy(
            id=new_id(),
            created_at=None,
            updated_at=None,
            is_new_row=True,
            is_row_read_only=False
        )
        self.save(user, period, self.load(user, period) + [new_record])
        return self._find(user, period, new_record.id)

    def update_row(self, user: str, period: str, record_id: str, **changes: Any) -> DisclosureRecord:
        """Apply field changes to one record"""
        unknown = set(changes) - _RECORD_FIELDS
        if unknown:
            raise ValueError(f"Unknown record field(s): {', '.join(sorted(unknown))}")
        protected = set(changes) & _STORE_OWNED
        if protected:
            raise ValueError(f"Field(s) set by the store: {', '.join(sorted(protected))}")

        records = self.load(user, period)
        for i, record in enumerate(records):
            if record.id == record_id:
                records[i] = record.copy(is_modified=True, **changes)
                break
        else:
            raise NotFound(f"Record {record_id} not found in {user} / {period}", details={"id": record_id})

        self.save(user, period, records)
        return self._find(user, period, record_id)

    def delete_rows(self, user: str, period: str, record_ids: list[str]) -> int:
        """Remove records by id, return how many were removed"""
        records = self.load(user, period)
        kept = [record for record in records if record.id not in record_ids]
        removed = len(records) - len(kept)
        if removed == 0:
            raise NotFound(f"No matching records in {user} / {period}", details={"ids": list(record_ids)})
        self.save(user, period, kept)
        return removed

    def duplicate_rows(self, user: str, period: str, record_ids: list[str]) -> list[DisclosureRecord]:
        """Copy records under new ids, names suffixed with " (Copy)" """
        records = self.load(user, period)
        copies = [
            record.copy(
                id=new_id(),
                entity_name_english=f"{record.entity_name_english} (Copy)",
                is_modified=True,
                is_new_row=True,
                is_submitted=False,
                submitted_at=None,
                submitted_by=None,
                created_at=None,
                updated_at=None,
            )
            for record in records
            if record.id in record_ids
        ]
        if not copies:
            raise NotFound(f"No matching records in {user} / {period}", details={"ids": list(record_ids)})
        self.save(user, period, records + copies)
        copy_ids = {c.id for c in copies}
        return [r for r in self.load(user, period) if r.id in copy_ids]

    def copy_period(self, user: str, from_period: str, to_period: str) -> list[DisclosureRecord]:
        """Persist a copy of one period's records into another period"""
        copies = [
            record.copy(
                id=new_id(),
                is_modified=True,
                is_new_row=True,
                is_submitted=False,
                submitted_at=None,
                submitted_by=None,
                created_at=None,
                updated_at=None,
            )
            for record in self.load(user, from_period)
        ]
        self.save(user, to_period, copies)
        return self.load(user, to_period)

    def finalize(self, user: str, period: str, records: Optional[list[DisclosureRecord]] = None) -> SaveResult:
        """Save a dataset and mark every row as no longer a draft"""
        if records is None:
            records = self.load(user, period)
        finalized = [
            record.copy(is_new_row=False, is_from_previous_quarter=False, previous_quarter_source=None)
            for record in records
        ]
        return self.save(user, period, finalized)

    def submit(self, user: str, period: str) -> SaveResult:
        """Finalize and flag every record of a period as submitted"""
        records = self.load(user, period)
        if not records:
            raise NotFound(f"No records to submit for {user} / {period}")
        submitted_at = self.stamp()
        submitted = [
            record.copy(is_submitted=True, submitted_at=submitted_at, submitted_by=user)
            for record in records
        ]
        return self.finalize(user, period, submitted)

    def unsubmit(self, user: str, period: str, record_id: Optional[str] = None) -> SaveResult:
        """Clear submission state for one record, or the whole period"""
        records = self.load(user, period)
        if record_id is not None and not any(record.id == record_id for record in records):
            raise NotFound(f"Record {record_id} not found in {user} / {period}", details={"id": record_id})

        reopened = [
            record.copy(is_submitted=False, submitted_at=None, submitted_by=None)
            if record_id is None or record.id == record_id else record
            for record in records
        ]
        return self.save(user, period, reopened)

    def export_json(self) -> str:
        return json.dumps(self.repository.dump(), indent=2)

    def import_json(self, text: str) -> None:
        """Replace the whole store from an export_json() document"""
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageFailure(f"Import is not valid JSON: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("datasets"), dict):
            raise StorageFailure("Import document has no 'datasets' mapping")
        self.repository.restore(document)

    def _find(self, user: str, period: str, record_id: str) -> DisclosureRecord:
        for record in self.load(user, period):
            if record.id == record_id:
                return record
        raise NotFound(f"Record {record_id} not found in {user} / {period}", details={"id": record_id})


class FallbackResolver:
    """Use case: Decide which dataset a user sees for a period"""

    def __init__(self, store: RecordStore, periods: PeriodSequence):
        self.store = store
        self.periods = periods

    def resolve(self, user: str, period: str) -> ResolvedDataset:
        """
        Own saved records, or a draft derived from the previous period.

        The derived draft is a view: it gets fresh ids and timestamps and
        is never written back.
        """
        period = self.periods.canonical(period)

        if self.store.has_saved(user, period):
            return ResolvedDataset(records=self.store.load(user, period))

        previous = self.periods.previous(period)
        if previous is None:
            return ResolvedDataset(records=[])

        stamp = self.store.stamp()
        derived = [
            record.copy(
                id=new_id(),
                is_modified=False,
                is_new_row=True,
                is_from_previous_quarter=True,
                previous_quarter_source=previous,
                created_at=stamp,
                updated_at=stamp,
            )
            for record in self.store.load(user, previous)
        ]
        if not derived:
            return ResolvedDataset(records=[])

        logger.info(f"resolve: {user} / {period} derived {len(derived)} record(s) from {previous}")
        return ResolvedDataset(
            records=derived,
            is_from_previous_quarter=True,
            previous_quarter_source=previous
        )

    def is_period_locked(self, user: str, period: str) -> bool:
        """A period is locked once the user has saved any later period"""
        return any(self.store.has_saved(user, later) for later in self.periods.later(period))


class AdminAggregator:
    """Use case: Administrator view across admin and company datasets"""

    def __init__(
        self,
        store: RecordStore,
        resolver: FallbackResolver,
        admin_user: str,
        company_users: Optional[list[str]] = None
    ):
        self.store = store
        self.resolver = resolver
        self.admin_user = admin_user
        self.company_users = company_users

    def companies(self) -> list[str]:
        """Configured company users, or every non-admin user in the store"""
        if self.company_users:
            return list(self.company_users)
        return sorted(user for user in self.store.list_users() if user != self.admin_user)

    def combined_view(self, period: str) -> list[DisclosureRecord]:
        """
        Admin records (with fallback) followed by each company's saved records.

        Companies get no fallback: an administrator only sees what a company
        actually saved for this period, tagged read-only.
        """
        admin_part = [
            record.copy(data_source=SOURCE_ADMIN, is_row_read_only=False)
            for record in self.resolver.resolve(self.admin_user, period).records
        ]

        period = self.resolver.periods.canonical(period)
        company_part = []
        for company in self.companies():
            company_part.extend(
                record.copy(data_source=SOURCE_COMPANY, is_row_read_only=True)
                for record in self.store.load(company, period)
            )

        return admin_part + company_part


class ReportService:
    """Use case: Build a period comparison report for a user"""

    def __init__(
        self,
        store: RecordStore,
        aggregator: AdminAggregator,
        periods: PeriodSequence,
        renderer: ReportRenderer,
        comparator: PeriodComparator,
        clock: Clock = utc_now
    ):
        self.store = store
        self.aggregator = aggregator
        self.periods = periods
        self.renderer = renderer
        self.comparator = comparator
        self.clock = clock

    def comparison_data(self, options: ReportOptions) -> PeriodComparison:
        """Current and previous datasets, chosen by role and scope"""
        current_period = self.periods.canonical(options.current_period)
        previous_period = self.periods.previous(current_period)

        if options.is_consolidated:
            fetch = self.aggregator.combined_view
        else:
            if options.is_admin:
                owner = options.target_company or self.aggregator.admin_user
            else:
                owner = options.username

            def fetch(period: str) -> list[DisclosureRecord]:
                return self.store.load(owner, period)

        return PeriodComparison(
            current_period=current_period,
            previous_period=previous_period,
            current=fetch(current_period),
            previous=fetch(previous_period) if previous_period else []
        )

    def filename(self, options: ReportOptions, generated_at: datetime) -> str:
        """Deterministic workbook name from role, scope, period and date"""
        date = generated_at.strftime("%Y-%m-%d")
        period = "-".join(self.periods.canonical(options.current_period).split())
        report_format = "Full-Data" if options.report_type == REPORT_FULL_DATA else "Change-Tracking"

        if not options.is_admin:
            return f"Company-{report_format}-Report-{period}-{date}.xlsx"
        if options.include_all_companies:
            return f"Admin-Consolidated-{report_format}-Report-{period}-{date}.xlsx"
        company = "-".join((options.target_company or self.aggregator.admin_user).split())
        return f"Admin-Company-{report_format}-Report-{company}-{period}-{date}.xlsx"

    def generate(self, options: ReportOptions) -> RenderedReport:
        """Fetch, compare and render in one pass"""
        generated_at = self.clock()
        comparison = self.comparison_data(options)
        filename = self.filename(options, generated_at)

        logger.info(
            f"report: {filename} current={len(comparison.current)} "
            f"previous={len(comparison.previous)} ({comparison.previous_period or 'no previous period'})"
        )
        return self.renderer.render(comparison, options, filename, generated_at)

    def write(self, options: ReportOptions, directory: str | Path) -> Path:
        """Render and write the workbook into directory, return its path"""
        report = self.generate(options)
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / report.filename
        path.write_bytes(report.content)
        return path


class SubmissionService:
    """Use case: Exchange datasets with the remote submission API"""

    def __init__(self, store: RecordStore, gateway: SubmissionGateway):
        self.store = store
        self.gateway = gateway

    def pull(self, user: str, period: str) -> SaveResult:
        """Replace the local dataset with the API's records for the period"""
        label = parse_period_label(period)
        items = self.gateway.list_by_period(label.year, label.name)
        # Rows are the user's own; submitted ones stay flagged via is_submitted
        records = [from_wire(item).copy(is_row_read_only=False) for item in items]
        logger.info(f"pull: {len(records)} record(s) for {user} / {label}")
        return self.store.save(user, str(label), records)

    def push_draft(self, user: str, period: str) -> list[DisclosureRecord]:
        """Send the locally saved, unsubmitted records as a draft"""
        label = parse_period_label(period)
        records = [r for r in self.store.load(user, str(label)) if not r.is_submitted]
        payload = [to_wire(record, label.year, label.name) for record in records]
        logger.info(f"push_draft: {len(payload)} record(s) for {user} / {label}")
        return [from_wire(item) for item in self.gateway.save_draft(payload)]

    def submit(self, period: str) -> dict[str, Any]:
        label = parse_period_label(period)
        return self.gateway.submit_period(label.year, label.name)

    def unsubmit(self, period: Optional[str] = None, record_id: Optional[int] = None) -> dict[str, Any]:
        """Reverse submission by id when given, otherwise for the whole period"""
        if record_id is not None:
            return self.gateway.unsubmit_by_id(record_id)
        if period is None:
            raise ValueError("Either period or record_id is required")
        label = parse_period_label(period)
        return self.gateway.unsubmit_period(label.year, label.name)


# Days left before a deadline counts as "urgent", then "upcoming"
URGENT_DAYS = 7
UPCOMING_DAYS = 30
MAX_YEARS_AHEAD = 10


def parse_deadline(value: str) -> datetime:
    """ISO date or timestamp; values without a zone are taken as UTC"""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _period_rank(name: str) -> int:
    return PERIOD_NAMES.index(name) if name in PERIOD_NAMES else len(PERIOD_NAMES)


def _as_deadline(item: dict[str, Any]) -> PeriodDeadline:
    try:
        return PeriodDeadline.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        raise StorageFailure(f"Unexpected period deadline from submission API: {item!r}") from e


class DeadlineService:
    """Use case: Read and maintain per-period submission deadlines"""

    def __init__(self, gateway: SubmissionGateway, clock: Clock = utc_now):
        self.gateway = gateway
        self.clock = clock

    def deadlines(self, year_gte: Optional[int] = None, deadline_gte: Optional[str] = None) -> list[PeriodDeadline]:
        """Deadlines ordered by year, then by period within the year"""
        items = self.gateway.list_deadlines(year_gte=year_gte, deadline_gte=deadline_gte)
        deadlines = [_as_deadline(item) for item in items]
        return sorted(deadlines, key=lambda d: (d.year, _period_rank(d.time_period)))

    def for_year(self, year: int) -> list[PeriodDeadline]:
        return self.deadlines(year_gte=year)

    def upcoming(self) -> list[PeriodDeadline]:
        return self.deadlines(deadline_gte=self.clock().isoformat())

    def next_deadline(self) -> Optional[PeriodDeadline]:
        """Earliest deadline that has not passed, or None"""
        upcoming = self.upcoming()
        if not upcoming:
            return None
        return min(upcoming, key=lambda d: parse_deadline(d.dead_line))

    def exists(self, year: int, time_period: str) -> bool:
        return any(d.year == year and d.time_period == time_period for d in self.for_year(year))

    def validate(self, year: Optional[int], time_period: Optional[str], dead_line: Optional[str]) -> dict[str, str]:
        """Field name -> problem, empty when the deadline may be saved"""
        errors = {}
        now = self.clock()

        if not year:
            errors["year"] = "Year is required"
        elif year < now.year:
            errors["year"] = "Year cannot be in the past"
        elif year > now.year + MAX_YEARS_AHEAD:
            errors["year"] = f"Year cannot be more than {MAX_YEARS_AHEAD} years in the future"

        if not time_period:
            errors["time_period"] = "Time period is required"
        elif time_period not in PERIOD_NAMES:
            errors["time_period"] = "Invalid time period selected"

        if not dead_line:
            errors["dead_line"] = "Deadline is required"
        else:
            try:
                when = parse_deadline(dead_line)
            except ValueError:
                errors["dead_line"] = "Invalid deadline date"
            else:
                if when <= now:
                    errors["dead_line"] = "Deadline must be in the future"

        return errors

    def set_deadline(self, period: str, dead_line: str) -> PeriodDeadline:
        """Validate and upsert the deadline of a period label"""
        label = parse_period_label(period)
        errors = self.validate(label.year, label.name, dead_line)
        if errors:
            problems = "; ".join(f"{key}: {message}" for key, message in errors.items())
            raise InvalidPeriod(f"Invalid deadline for {label}: {problems}", details=errors)

        saved = self.gateway.upsert_deadline(PeriodDeadline(label.year, label.name, dead_line).to_dict())
        logger.info(f"deadline: {label} set to {dead_line}")
        return _as_deadline(saved)

    def status(self, deadline: PeriodDeadline) -> DeadlineStatus:
        """Classify a deadline by the time left before it"""
        remaining = parse_deadline(deadline.dead_line) - self.clock()
        days = remaining.days

        if remaining.total_seconds() < 0:
            status, text = "expired", "Expired"
        elif days <= URGENT_DAYS:
            status = "urgent"
            text = "Today" if days == 0 else f"{days} day{'' if days == 1 else 's'}"
        elif days <= UPCOMING_DAYS:
            status, text = "upcoming", f"{days} days"
        else:
            status, text = "future", f"{days} days"

        return DeadlineStatus(deadline=deadline, status=status, days_remaining=days, time_remaining=text)
