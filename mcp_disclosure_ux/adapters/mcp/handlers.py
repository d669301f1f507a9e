"""
MCP Tool Handlers

Shared handlers for MCP tools that use the hexagonal core.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from ... import config
from ...container import Container
from ...core.domain import (
    REPORT_CHANGE_TRACKING,
    ROLE_ADMIN,
    ROLE_COMPANY,
    SOURCE_ADMIN,
    DeadlineStatus,
    DisclosureRecord,
    ReportOptions,
    SaveResult,
)
from ...core.errors import DisclosureError

logger = logging.getLogger(__name__)


def _failure(action: str, e: Exception) -> dict[str, Any]:
    """Error result shared by every handler"""
    kind = e.code if isinstance(e, DisclosureError) else "ERROR"
    logger.error(f"{action} failed ({kind}): {e}")
    return {
        "success": False,
        "error": f"Failed to {action}: {str(e)}",
        "error_kind": kind
    }


def _role(role: Optional[str]) -> str:
    if role and role.strip().lower() in ("administrator", "admin"):
        return ROLE_ADMIN
    return ROLE_COMPANY


def _records(records: list[DisclosureRecord]) -> list[dict[str, Any]]:
    return [record.to_dict() for record in records]


def _deadline(status: DeadlineStatus) -> dict[str, Any]:
    return {
        "period": status.deadline.label,
        **status.deadline.to_dict(),
        "status": status.status,
        "days_remaining": status.days_remaining,
        "time_remaining": status.time_remaining
    }


def _save_result(result: SaveResult) -> dict[str, Any]:
    return {
        "user": result.user,
        "period": result.period,
        "saved_count": result.saved_count,
        "dropped_read_only": result.dropped_read_only
    }


class MCPHandlers:
    """Handlers for MCP tools using dependency injection"""

    def __init__(self, container: Container, report_dir: Optional[str | Path] = None):
        self.container = container
        self.report_dir = Path(report_dir or config.report_dir())

    async def load_dataset(self, user: str, period: str) -> dict[str, Any]:
        """Saved records plus save/lock status"""
        try:
            period = self.container.periods.canonical(period)
            records = await asyncio.to_thread(self.container.store.load, user, period)
            has_saved = await asyncio.to_thread(self.container.store.has_saved, user, period)
            locked = await asyncio.to_thread(self.container.resolver.is_period_locked, user, period)

            return {
                "success": True,
                "user": user,
                "period": period,
                "records": _records(records),
                "count": len(records),
                "has_saved": has_saved,
                "locked": locked
            }

        except Exception as e:
            return _failure(f"load dataset for {user} / {period}", e)

    async def save_dataset(
        self,
        user: str,
        period: str,
        records: list[dict[str, Any]],
        finalize: bool = False
    ) -> dict[str, Any]:
        """Replace a dataset, optionally finalizing it"""
        try:
            period = self.container.periods.canonical(period)
            parsed = [DisclosureRecord.from_dict(row) for row in records]
            save = self.container.store.finalize if finalize else self.container.store.save
            result = await asyncio.to_thread(save, user, period, parsed)

            return {
                "success": True,
                "finalized": finalize,
                **_save_result(result)
            }

        except Exception as e:
            return _failure(f"save dataset for {user} / {period}", e)

    async def resolve_dataset(self, user: str, period: str) -> dict[str, Any]:
        """Own saved data or a draft derived from the previous period"""
        try:
            resolved = await asyncio.to_thread(self.container.resolver.resolve, user, period)

            return {
                "success": True,
                "user": user,
                "period": self.container.periods.canonical(period),
                "records": _records(resolved.records),
                "count": len(resolved.records),
                "is_from_previous_quarter": resolved.is_from_previous_quarter,
                "previous_quarter_source": resolved.previous_quarter_source
            }

        except Exception as e:
            return _failure(f"resolve dataset for {user} / {period}", e)

    async def combined_view(self, period: str) -> dict[str, Any]:
        """Administrator view across admin and company datasets"""
        try:
            records = await asyncio.to_thread(self.container.aggregator.combined_view, period)
            admin_count = sum(1 for record in records if record.data_source == SOURCE_ADMIN)

            return {
                "success": True,
                "period": self.container.periods.canonical(period),
                "admin_user": self.container.admin_user,
                "companies": self.container.aggregator.companies(),
                "records": _records(records),
                "count": len(records),
                "admin_count": admin_count,
                "company_count": len(records) - admin_count
            }

        except Exception as e:
            return _failure(f"build combined view for {period}", e)

    async def compare_periods(
        self,
        username: str,
        period: str,
        role: str = ROLE_COMPANY,
        include_all_companies: bool = False,
        target_company: Optional[str] = None
    ) -> dict[str, Any]:
        """Changes and deletions between a period and its predecessor"""
        try:
            options = ReportOptions(
                role=_role(role),
                username=username,
                current_period=period,
                include_all_companies=include_all_companies,
                target_company=target_company
            )
            comparison = await asyncio.to_thread(self.container.reports.comparison_data, options)
            comparator = self.container.comparator
            changes = comparator.diff_fields(comparison.current, comparison.previous)
            deleted = comparator.find_deleted(comparison.current, comparison.previous)

            return {
                "success": True,
                "current_period": comparison.current_period,
                "previous_period": comparison.previous_period,
                "current_count": len(comparison.current),
                "previous_count": len(comparison.previous),
                "has_new_records": comparator.has_new_records(comparison.current, comparison.previous),
                "changes": [
                    {
                        "entity_name": change.entity_name,
                        "field": change.field_label,
                        "previous_value": change.previous_value,
                        "current_value": change.current_value,
                        "change_type": change.change_type
                    }
                    for change in changes
                ],
                "deleted": _records(deleted)
            }

        except Exception as e:
            return _failure(f"compare periods for {username} / {period}", e)

    async def generate_report(
        self,
        username: str,
        period: str,
        role: str = ROLE_COMPANY,
        report_type: str = REPORT_CHANGE_TRACKING,
        include_all_companies: bool = False,
        target_company: Optional[str] = None,
        highlight_ownership_changes: Optional[bool] = None,
        output_dir: Optional[str] = None
    ) -> dict[str, Any]:
        """Render the workbook and write it to disk"""
        try:
            options = ReportOptions(
                role=_role(role),
                username=username,
                current_period=period,
                include_all_companies=include_all_companies,
                target_company=target_company,
                report_type=report_type,
                highlight_ownership_changes=highlight_ownership_changes
            )
            directory = Path(output_dir) if output_dir else self.report_dir
            path = await asyncio.to_thread(self.container.reports.write, options, directory)

            return {
                "success": True,
                "path": str(path),
                "filename": path.name,
                "size_bytes": path.stat().st_size,
                "report_type": report_type,
                "consolidated": options.is_consolidated
            }

        except Exception as e:
            return _failure(f"generate report for {username} / {period}", e)

    async def list_periods(self, user: Optional[str] = None) -> dict[str, Any]:
        """Period sequence, with per-user status when a user is given"""
        try:
            periods = self.container.periods.labels
            users = await asyncio.to_thread(self.container.store.list_users)

            if user is None:
                return {
                    "success": True,
                    "periods": periods,
                    "users": users,
                    "admin_user": self.container.admin_user
                }

            counts = dict(await asyncio.to_thread(self.container.store.list_periods, user))
            status = []
            for period in periods:
                status.append({
                    "period": period,
                    "saved": await asyncio.to_thread(self.container.store.has_saved, user, period),
                    "count": counts.get(period, 0),
                    "locked": await asyncio.to_thread(self.container.resolver.is_period_locked, user, period)
                })

            return {
                "success": True,
                "user": user,
                "periods": status
            }

        except Exception as e:
            return _failure(f"list periods for {user or 'all users'}", e)

    async def submit_period(
        self,
        user: str,
        period: str,
        action: str = "submit",
        record_id: Optional[str] = None,
        remote: bool = False
    ) -> dict[str, Any]:
        """Local submission state, optionally mirrored on the remote API"""
        try:
            period = self.container.periods.canonical(period)
            submissions = self.container.submissions
            if (remote or action in ("pull", "push")) and submissions is None:
                raise ValueError("Remote submission API is not configured (set SUBMISSION_API_URL)")

            result: dict[str, Any] = {"success": True, "user": user, "period": period, "action": action}

            if action == "submit":
                saved = await asyncio.to_thread(self.container.store.submit, user, period)
                result.update(_save_result(saved))
                if remote:
                    result["remote"] = await asyncio.to_thread(submissions.submit, period)

            elif action == "unsubmit":
                saved = await asyncio.to_thread(self.container.store.unsubmit, user, period, record_id)
                result.update(_save_result(saved))
                if remote:
                    remote_id = int(record_id) if record_id is not None else None
                    result["remote"] = await asyncio.to_thread(
                        submissions.unsubmit, period=period, record_id=remote_id
                    )

            elif action == "pull":
                saved = await asyncio.to_thread(submissions.pull, user, period)
                result.update(_save_result(saved))

            elif action == "push":
                pushed = await asyncio.to_thread(submissions.push_draft, user, period)
                result["pushed_count"] = len(pushed)
                result["records"] = _records(pushed)

            else:
                raise ValueError(f"Unknown action {action!r}; expected submit, unsubmit, pull or push")

            return result

        except Exception as e:
            return _failure(f"{action} {user} / {period}", e)

    async def period_deadlines(
        self,
        action: str = "list",
        year: Optional[int] = None,
        period: Optional[str] = None,
        dead_line: Optional[str] = None
    ) -> dict[str, Any]:
        """List, look up or set per-period submission deadlines on the remote API"""
        try:
            deadlines = self.container.deadlines
            if deadlines is None:
                raise ValueError("Remote submission API is not configured (set SUBMISSION_API_URL)")

            result: dict[str, Any] = {"success": True, "action": action}

            if action == "list":
                found = await asyncio.to_thread(deadlines.deadlines, year)
                result["deadlines"] = [_deadline(deadlines.status(d)) for d in found]

            elif action == "upcoming":
                found = await asyncio.to_thread(deadlines.upcoming)
                result["deadlines"] = [_deadline(deadlines.status(d)) for d in found]

            elif action == "next":
                found = await asyncio.to_thread(deadlines.next_deadline)
                result["deadline"] = _deadline(deadlines.status(found)) if found else None

            elif action == "set":
                if not period or not dead_line:
                    raise ValueError("set requires period and dead_line")
                saved = await asyncio.to_thread(deadlines.set_deadline, period, dead_line)
                result["deadline"] = _deadline(deadlines.status(saved))

            else:
                raise ValueError(f"Unknown action {action!r}; expected list, upcoming, next or set")

            return result

        except Exception as e:
            return _failure(f"{action} period deadlines", e)
