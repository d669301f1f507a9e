"""
Dependency Injection Container

Wires together the hexagonal architecture by creating and injecting dependencies.
"""
from pathlib import Path
from typing import Optional

from . import config
from .adapters import ExcelReportRenderer, HttpSubmissionGateway, InMemoryRepository, JsonFileRepository
from .core import (
    AdminAggregator,
    DatasetRepository,
    DeadlineService,
    FallbackResolver,
    MatchKey,
    PeriodComparator,
    PeriodSequence,
    RecordStore,
    ReportService,
    SubmissionGateway,
    SubmissionService,
)
from .core.domain import SOURCE_ADMIN, SOURCE_COMPANY
from .core.services import Clock, utc_now


class Container:
    """Dependency injection container for the application"""

    def __init__(
        self,
        data_file: Optional[str | Path] = None,
        admin_user: str = config.DEFAULT_ADMIN_USER,
        company_users: Optional[list[str]] = None,
        periods: Optional[PeriodSequence] = None,
        match_key: MatchKey = MatchKey.NAME_AND_REGISTRATION,
        gateway: Optional[SubmissionGateway] = None,
        repository: Optional[DatasetRepository] = None,
        clock: Clock = utc_now
    ):
        # Adapters (infrastructure)
        if repository is None:
            repository = JsonFileRepository(data_file) if data_file else InMemoryRepository()
        self.repository = repository
        self.periods = periods or PeriodSequence.for_years(config.DEFAULT_FIRST_YEAR, config.DEFAULT_LAST_YEAR)
        self.admin_user = admin_user
        self.comparator = PeriodComparator(match_key)
        self.renderer = ExcelReportRenderer(
            comparator=self.comparator,
            source_labels={SOURCE_ADMIN: admin_user, SOURCE_COMPANY: "Company"}
        )
        self.gateway = gateway

        # Services (use cases)
        self.store = RecordStore(repository=self.repository, clock=clock)

        self.resolver = FallbackResolver(
            store=self.store,
            periods=self.periods
        )

        self.aggregator = AdminAggregator(
            store=self.store,
            resolver=self.resolver,
            admin_user=admin_user,
            company_users=company_users
        )

        self.reports = ReportService(
            store=self.store,
            aggregator=self.aggregator,
            periods=self.periods,
            renderer=self.renderer,
            comparator=self.comparator,
            clock=clock
        )

        self.submissions = SubmissionService(store=self.store, gateway=gateway) if gateway else None
        self.deadlines = DeadlineService(gateway=gateway, clock=clock) if gateway else None

    @classmethod
    def from_env(cls) -> "Container":
        """Container configured from DISCLOSURE_* and SUBMISSION_API_* variables"""
        first_year, last_year = config.year_range()
        api_url = config.submission_api_url()
        gateway = HttpSubmissionGateway(api_url, token=config.submission_api_token()) if api_url else None

        return cls(
            data_file=config.data_file(),
            admin_user=config.admin_user(),
            company_users=config.company_users(),
            periods=PeriodSequence.for_years(first_year, last_year),
            gateway=gateway
        )
