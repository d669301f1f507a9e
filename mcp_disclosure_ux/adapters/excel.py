"""
Excel Report Adapter

Implements ReportRenderer port using openpyxl, with pandas for the
summary sheet aggregates.

Content is written first and styled afterwards. The optional sections move
rows around, so styling finds its targets by scanning column A for the
known titles and header labels instead of trusting fixed offsets.
"""
from datetime import datetime
from io import BytesIO
from typing import Any, Optional

import openpyxl
import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..core.comparator import PeriodComparator
from ..core.domain import (
    REPORT_CHANGE_TRACKING,
    REPORT_FULL_DATA,
    DisclosureRecord,
    PeriodComparison,
    RenderedReport,
    ReportOptions,
)
from ..core.errors import DisclosureError, RenderFailure
from ..core.periods import period_end_date
from ..core.ports import ReportRenderer

REPORT_TITLE = "Business Quarters Report"
CHANGES_TITLE = "CHANGES BETWEEN QUARTERS"
DELETED_TITLE = "DELETED RECORDS"
NO_CHANGES = "No changes detected between periods"
NO_DELETIONS = "No records deleted between periods"

# Main table columns; ownership columns are inserted after Country
BASE_COLUMNS = [
    ("asset_code", "Asset Code"),
    ("entity_name_english", "Entity Name (English)"),
    ("entity_name_arabic", "Entity Name (Arabic)"),
    ("commercial_registration_number", "CR Number"),
    ("moi_number", "MOI Number"),
    ("country_of_incorporation", "Country"),
    ("acquisition_disposal_date", "Acquisition Date"),
    ("direct_parent_entity", "Direct Parent"),
    ("ultimate_parent_entity", "Ultimate Parent"),
    ("investment_relationship_type", "Investment Type"),
    ("ownership_structure", "Ownership Structure"),
    ("principal_activities", "Principal Activities"),
    ("currency", "Currency"),
]
OWNERSHIP_INSERT_AT = 6

CHANGES_HEADER = ["Entity Name (English)", "Field Changed", "Previous Value", "Current Value", "Change Type"]
DELETED_HEADER = [
    "Entity Name (English)",
    "Entity Name (Arabic)",
    "CR Number",
    "MOI Number",
    "Country",
    "Ownership %",
    "Investment Type",
]

COLUMN_WIDTHS = [12, 25, 25, 18, 15, 15, 18, 18, 15, 20, 18, 18, 18, 30, 10]

# ─── Style Definitions ────────────────────────────────────────────────
ADDITION_COLOR = "E8F5E8"
MODIFIED_COLOR = "FFFF99"
HEADER_DEFAULT_COLOR = "F0F0F0"
HEADER_FULL_DATA_COLOR = "90EE90"
HEADER_NEW_RECORDS_COLOR = "00FF00"
CHANGES_COLOR = "FFFF99"
DELETED_COLOR = "FF9999"
SECTION_TITLE_COLORS = {CHANGES_COLOR: "E6E600", DELETED_COLOR: "CC0000"}

LIGHT_BORDER = Border(
    left=Side(style='thin', color='CCCCCC'), right=Side(style='thin', color='CCCCCC'),
    top=Side(style='thin', color='CCCCCC'), bottom=Side(style='thin', color='CCCCCC')
)
DARK_BORDER = Border(
    left=Side(style='thin', color='000000'), right=Side(style='thin', color='000000'),
    top=Side(style='thin', color='000000'), bottom=Side(style='thin', color='000000')
)


def solid(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type='solid')


def _text_color(background: str) -> str:
    # Black on yellow, white on red
    return "000000" if background in (CHANGES_COLOR, SECTION_TITLE_COLORS[CHANGES_COLOR]) else "FFFFFF"


class ExcelReportRenderer(ReportRenderer):
    """Period comparison workbook built with openpyxl"""

    def __init__(self, comparator: PeriodComparator, source_labels: Optional[dict[str, str]] = None):
        self.comparator = comparator
        self.source_labels = source_labels or {}

    def render(
        self,
        comparison: PeriodComparison,
        options: ReportOptions,
        filename: str,
        generated_at: datetime
    ) -> RenderedReport:
        """Build the whole workbook in memory; nothing is returned on failure"""
        try:
            wb = openpyxl.Workbook()
            ws = wb.active
            ws.title = "Report"

            self._write_report(ws, comparison, options, generated_at)
            self._style_report(ws, comparison, options)
            self._set_column_widths(ws)

            if options.is_consolidated:
                self._write_summary(wb.create_sheet("Summary"), comparison)

            buffer = BytesIO()
            wb.save(buffer)
        except DisclosureError:
            raise
        except Exception as e:
            raise RenderFailure(f"Failed to generate Excel report {filename}: {e}") from e

        return RenderedReport(filename=filename, content=buffer.getvalue(), sheet_names=wb.sheetnames)

    # ─── Content ──────────────────────────────────────────────────────

    def headers(self, comparison: PeriodComparison) -> list[str]:
        """Main table header with one or two ownership columns"""
        ownership = []
        if comparison.previous_period:
            ownership.append(f"Ownership % as at {period_end_date(comparison.previous_period)}")
        ownership.append(f"Ownership % as at {period_end_date(comparison.current_period)}")

        headers = [label for _, label in BASE_COLUMNS]
        headers[OWNERSHIP_INSERT_AT:OWNERSHIP_INSERT_AT] = ownership
        return headers

    def data_row(self, record: DisclosureRecord, comparison: PeriodComparison) -> list[Any]:
        row: list[Any] = [getattr(record, attr) or "" for attr, _ in BASE_COLUMNS]

        ownership: list[Any] = []
        if comparison.previous_period:
            previous_record = self.comparator.match(record, comparison.previous)
            ownership.append(_number(previous_record.ownership_percentage) if previous_record else "")
        ownership.append(_number(record.ownership_percentage))

        row[OWNERSHIP_INSERT_AT:OWNERSHIP_INSERT_AT] = ownership
        return row

    def _write_report(
        self,
        ws: Worksheet,
        comparison: PeriodComparison,
        options: ReportOptions,
        generated_at: datetime
    ) -> None:
        report_format = "Full Data Report" if options.report_type == REPORT_FULL_DATA else "Change Tracking Report"
        if options.is_consolidated:
            scope = "Consolidated (All Companies)"
        elif options.is_admin and options.target_company:
            scope = f"Company-Specific ({options.target_company})"
        else:
            scope = "Company-Specific"
        generated_for = f"Administrator ({options.username})" if options.is_admin else options.username

        ws.append([REPORT_TITLE])
        ws.append([f"Generated for: {generated_for}"])
        ws.append([f"Report Format: {report_format}"])
        ws.append([f"Report Scope: {scope}"])
        ws.append([f"Current Period: {comparison.current_period}"])
        ws.append([f"Previous Period: {comparison.previous_period or 'N/A'}"])
        ws.append([f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}"])
        ws.append([])

        ws.append(self.headers(comparison))
        for record in comparison.current:
            ws.append(self.data_row(record, comparison))

        if self.includes_change_sections(comparison, options):
            ws.append([])
            ws.append([])
            self._write_changes(ws, comparison)
            ws.append([])
            ws.append([])
            self._write_deleted(ws, comparison)

    @staticmethod
    def includes_change_sections(comparison: PeriodComparison, options: ReportOptions) -> bool:
        return (
            options.report_type == REPORT_CHANGE_TRACKING
            and comparison.previous_period is not None
            and len(comparison.previous) > 0
        )

    def _write_changes(self, ws: Worksheet, comparison: PeriodComparison) -> None:
        ws.append([CHANGES_TITLE])
        ws.append([f"Changes from {comparison.previous_period} to {comparison.current_period}"])
        ws.append([])
        ws.append(CHANGES_HEADER)

        changes = self.comparator.diff_fields(comparison.current, comparison.previous)
        if not changes:
            ws.append([NO_CHANGES])
        for change in changes:
            ws.append([
                change.entity_name,
                change.field_label,
                change.previous_value or "(empty)",
                change.current_value or "(empty)",
                change.change_type,
            ])

    def _write_deleted(self, ws: Worksheet, comparison: PeriodComparison) -> None:
        ws.append([DELETED_TITLE])
        ws.append([f"Records removed from {comparison.previous_period} to {comparison.current_period}"])
        ws.append([])
        ws.append(DELETED_HEADER)

        deleted = self.comparator.find_deleted(comparison.current, comparison.previous)
        if not deleted:
            ws.append([NO_DELETIONS])
        for record in deleted:
            ws.append([
                record.entity_name_english or "",
                record.entity_name_arabic or "",
                record.commercial_registration_number or "",
                record.moi_number or "",
                record.country_of_incorporation or "",
                _number(record.ownership_percentage),
                record.investment_relationship_type or "",
            ])

    # ─── Styling ──────────────────────────────────────────────────────

    def _style_report(self, ws: Worksheet, comparison: PeriodComparison, options: ReportOptions) -> None:
        ws.cell(row=1, column=1).font = Font(bold=True, size=14)

        header_row = find_row(ws, BASE_COLUMNS[0][1])
        if header_row is None:
            raise RenderFailure("Main table header not found in rendered sheet")
        width = len(self.headers(comparison))

        if options.report_type == REPORT_FULL_DATA:
            header_color = HEADER_FULL_DATA_COLOR
        elif self.comparator.has_new_records(comparison.current, comparison.previous):
            header_color = HEADER_NEW_RECORDS_COLOR
        else:
            header_color = HEADER_DEFAULT_COLOR
        self._style_header_row(ws, header_row, width, header_color, text_color="000000")

        ownership_cols = range(OWNERSHIP_INSERT_AT + 1, OWNERSHIP_INSERT_AT + 1 + (width - len(BASE_COLUMNS)))
        highlight_ownership = options.ownership_highlighting()

        for offset, record in enumerate(comparison.current, 1):
            row = header_row + offset
            if self.comparator.match(record, comparison.previous) is None:
                for col in range(1, width + 1):
                    cell = ws.cell(row=row, column=col)
                    cell.fill = solid(ADDITION_COLOR)
                    cell.border = LIGHT_BORDER
            elif highlight_ownership and self.comparator.ownership_changed(record, comparison.previous):
                for col in ownership_cols:
                    cell = ws.cell(row=row, column=col)
                    cell.fill = solid(MODIFIED_COLOR)
                    cell.border = LIGHT_BORDER

        self._style_section(ws, CHANGES_TITLE, CHANGES_COLOR, len(CHANGES_HEADER))
        self._style_section(ws, DELETED_TITLE, DELETED_COLOR, len(DELETED_HEADER))

    @staticmethod
    def _style_header_row(ws: Worksheet, row: int, width: int, color: str, text_color: str) -> None:
        for col in range(1, width + 1):
            cell = ws.cell(row=row, column=col)
            cell.font = Font(bold=True, color=text_color)
            cell.fill = solid(color)
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = DARK_BORDER

    def _style_section(self, ws: Worksheet, title: str, color: str, width: int) -> None:
        """Style a section's title row and the header row a few rows below it"""
        title_row = find_row(ws, title)
        if title_row is None:
            return

        title_color = SECTION_TITLE_COLORS[color]
        for col in range(1, min(5, width) + 1):
            cell = ws.cell(row=title_row, column=col)
            cell.font = Font(bold=True, size=12, color=_text_color(title_color))
            cell.fill = solid(title_color)
            cell.alignment = Alignment(horizontal='left', vertical='center')
            cell.border = DARK_BORDER

        for row in range(title_row + 1, min(title_row + 5, ws.max_row) + 1):
            value = ws.cell(row=row, column=1).value
            if value and ("Entity Name" in str(value) or "Field Changed" in str(value)):
                self._style_header_row(ws, row, width, color, text_color=_text_color(color))
                break

    @staticmethod
    def _set_column_widths(ws: Worksheet) -> None:
        for col, width in enumerate(COLUMN_WIDTHS, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

    # ─── Summary ──────────────────────────────────────────────────────

    def _write_summary(self, ws: Worksheet, comparison: PeriodComparison) -> None:
        ws.append(["Summary Report"])
        ws.append([f"Period: {comparison.current_period}"])
        ws.append([])

        ws.append(["Company Breakdown:"])
        ws.append(["Company", "Entities Count", "Total Ownership %"])
        for source, count, total in self.source_statistics(comparison.current):
            ws.append([source, count, total])
        ws.append([])

        if comparison.previous_period and comparison.previous:
            previous_total = _total_ownership(comparison.previous)
            current_total = _total_ownership(comparison.current)
            ws.append(["Period Comparison:"])
            ws.append(["Metric", comparison.previous_period, comparison.current_period, "Change"])
            ws.append([
                "Total Entities",
                len(comparison.previous),
                len(comparison.current),
                len(comparison.current) - len(comparison.previous),
            ])
            ws.append([
                "Total Ownership %",
                previous_total,
                current_total,
                round(current_total - previous_total, 2),
            ])

        ws.cell(row=1, column=1).font = Font(bold=True, size=14)
        for label in ("Company Breakdown:", "Period Comparison:"):
            row = find_row(ws, label)
            if row is not None:
                ws.cell(row=row, column=1).font = Font(bold=True)
                self._style_header_row(ws, row + 1, 4 if label.startswith("Period") else 3,
                                       HEADER_DEFAULT_COLOR, text_color="000000")
        self._set_column_widths(ws)

    def source_statistics(self, records: list[DisclosureRecord]) -> list[tuple[str, int, float]]:
        """(source label, entity count, total ownership %) in first-seen order"""
        if not records:
            return []
        df = pd.DataFrame([
            {
                "source": self.source_labels.get(record.data_source or "", record.data_source or "Unknown"),
                "ownership": record.ownership_percentage or 0,
            }
            for record in records
        ])
        stats = df.groupby("source", sort=False)["ownership"].agg(entities="count", total="sum").reset_index()
        return [
            (row.source, int(row.entities), round(float(row.total), 2))
            for row in stats.itertuples(index=False)
        ]


def find_row(ws: Worksheet, text: str) -> Optional[int]:
    """First row whose column A contains text"""
    for row in range(1, ws.max_row + 1):
        value = ws.cell(row=row, column=1).value
        if value is not None and text in str(value):
            return row
    return None


def _number(value: Any) -> Any:
    if value is None or value == "":
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _total_ownership(records: list[DisclosureRecord]) -> float:
    series = pd.Series([record.ownership_percentage or 0 for record in records], dtype="float64")
    return round(float(series.sum()), 2)
