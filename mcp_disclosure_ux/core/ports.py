"""
Ports - Interfaces for external dependencies

These define HOW the core interacts with the outside world,
but NOT the implementation details.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from .domain import PeriodComparison, RenderedReport, ReportOptions


class DatasetRepository(ABC):
    """Port for (user, period) dataset persistence and save-status marks"""

    @abstractmethod
    def get(self, user: str, period: str) -> list[dict[str, Any]]:
        """Stored rows for (user, period), empty if absent"""
        pass

    @abstractmethod
    def put(self, user: str, period: str, rows: list[dict[str, Any]], mark: Optional[str] = None) -> None:
        """Replace stored rows for (user, period), and its save mark when given, in one write"""
        pass

    @abstractmethod
    def get_mark(self, user: str, period: str) -> Optional[str]:
        """Timestamp of the last explicit save, or None"""
        pass

    @abstractmethod
    def put_mark(self, user: str, period: str, timestamp: str) -> None:
        """Record an explicit save"""
        pass

    @abstractmethod
    def clear_marks(self) -> None:
        """Forget every save-status mark"""
        pass

    @abstractmethod
    def list_users(self) -> list[str]:
        """Users that own at least one dataset"""
        pass

    @abstractmethod
    def list_periods(self, user: str) -> list[tuple[str, int]]:
        """(period, row count) for every dataset a user owns"""
        pass

    @abstractmethod
    def dump(self) -> dict[str, Any]:
        """Whole store as a JSON-compatible document"""
        pass

    @abstractmethod
    def restore(self, document: dict[str, Any]) -> None:
        """Replace the whole store with a document produced by dump()"""
        pass


class ReportRenderer(ABC):
    """Port for turning a period comparison into a workbook"""

    @abstractmethod
    def render(
        self,
        comparison: PeriodComparison,
        options: ReportOptions,
        filename: str,
        generated_at: datetime
    ) -> RenderedReport:
        """Build the complete workbook, or raise RenderFailure"""
        pass


class SubmissionGateway(ABC):
    """Port for the remote submission API"""

    @abstractmethod
    def list_by_period(self, year: int, time_period: str) -> list[dict[str, Any]]:
        """Investments for a year and period, empty if none"""
        pass

    @abstractmethod
    def save_draft(self, investments: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Bulk upsert investments as draft"""
        pass

    @abstractmethod
    def submit_period(self, year: int, time_period: str) -> dict[str, Any]:
        """Submit every investment of a period"""
        pass

    @abstractmethod
    def unsubmit_period(self, year: int, time_period: str) -> dict[str, Any]:
        """Reverse submission for a whole period"""
        pass

    @abstractmethod
    def unsubmit_by_id(self, investment_id: int) -> dict[str, Any]:
        """Reverse submission for one investment"""
        pass

    @abstractmethod
    def list_deadlines(
        self,
        year_gte: Optional[int] = None,
        deadline_gte: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Period deadlines, optionally from a year or a date onwards"""
        pass

    @abstractmethod
    def upsert_deadline(self, deadline: dict[str, Any]) -> dict[str, Any]:
        """Create or replace the deadline of one period"""
        pass
