"""
Plain-text formatters for disclosure tool results

Format handler results as terminal-style text output.
Used by both CLI and MCP adapters for consistent presentation.
"""

from typing import Any


def _error(result: dict[str, Any]) -> str:
    kind = result.get('error_kind')
    prefix = f"ERROR [{kind}]" if kind else "ERROR"
    return f"{prefix}: {result.get('error', 'Unknown error')}"


def _cut(value: Any, width: int) -> str:
    text = "" if value is None else str(value)
    return (text[:width - 3] + '...') if len(text) > width else text


def _records_table(records: list[dict[str, Any]]) -> list[str]:
    """Compact record listing shared by the dataset views"""
    lines = []
    lines.append(f"{'ENTITY':<32}  {'CR NUMBER':<14}  {'OWN %':>7}  {'SOURCE':<8}  FLAGS")
    lines.append("─" * 80)
    for record in records:
        flags = []
        if record.get('isNewRow'):
            flags.append("new")
        if record.get('isModified'):
            flags.append("modified")
        if record.get('isRowReadOnly'):
            flags.append("read-only")
        if record.get('isSubmitted'):
            flags.append("submitted")

        ownership = record.get('ownershipPercentage')
        ownership_str = f"{ownership:>7}" if ownership is not None else f"{'-':>7}"
        lines.append(
            f"{_cut(record.get('entityNameEnglish'), 32):<32}  "
            f"{_cut(record.get('commercialRegistrationNumber'), 14):<14}  "
            f"{ownership_str}  "
            f"{_cut(record.get('dataSource') or '', 8):<8}  "
            f"{', '.join(flags)}"
        )
    return lines


def format_load_dataset(result: dict[str, Any]) -> str:
    """Format load_dataset result as a terminal text block.

    Example output:
        neom | Third Quarter 2025 | SAVED (12 records)

        ENTITY                            CR NUMBER         OWN %  SOURCE    FLAGS
        ────────────────────────────────────────────────────────────────────────────────
        Alpha Holding                     1010101010           50            modified

        Try: resolve_dataset("neom", "Third Quarter 2025") | compare_periods("neom", "Third Quarter 2025")
    """
    if not result.get("success"):
        return _error(result)

    status = "SAVED" if result['has_saved'] else "NOT SAVED"
    if result.get('locked'):
        status += " | LOCKED"

    lines = [f"{result['user']} | {result['period']} | {status} ({result['count']} records)", ""]
    if result['records']:
        lines.extend(_records_table(result['records']))
    else:
        lines.append("NO RECORDS")

    lines.append("")
    lines.append(f'Try: resolve_dataset("{result["user"]}", "{result["period"]}") | '
                 f'compare_periods("{result["user"]}", "{result["period"]}")')
    return "\n".join(lines)


def format_save_dataset(result: dict[str, Any]) -> str:
    """Format save_dataset result as a one-line confirmation plus warnings"""
    if not result.get("success"):
        return _error(result)

    verb = "FINALIZED" if result.get('finalized') else "SAVED"
    lines = [f"{result['user']} | {result['period']} | {verb} {result['saved_count']} records"]
    if result['dropped_read_only']:
        lines.append(f"WARNING: {result['dropped_read_only']} read-only record(s) were not saved")
    return "\n".join(lines)


def format_resolve_dataset(result: dict[str, Any]) -> str:
    """Format resolve_dataset result as a terminal text block.

    Example output:
        neom | Fourth Quarter 2025 | DRAFT FROM Third Quarter 2025 (12 records)
    """
    if not result.get("success"):
        return _error(result)

    if result['is_from_previous_quarter']:
        origin = f"DRAFT FROM {result['previous_quarter_source']}"
    elif result['count']:
        origin = "SAVED"
    else:
        origin = "EMPTY"

    lines = [f"{result['user']} | {result['period']} | {origin} ({result['count']} records)", ""]
    if result['records']:
        lines.extend(_records_table(result['records']))
    if result['is_from_previous_quarter']:
        lines.append("")
        lines.append(f'Try: save_dataset("{result["user"]}", "{result["period"]}", records) to keep this draft')
    return "\n".join(lines)


def format_combined_view(result: dict[str, Any]) -> str:
    """Format combined_view result as a terminal text block"""
    if not result.get("success"):
        return _error(result)

    lines = []
    lines.append(f"COMBINED VIEW | {result['period']}")
    lines.append(f"{result['admin_count']} admin ({result['admin_user']}) + "
                 f"{result['company_count']} company records from {len(result['companies'])} companies")
    lines.append("")
    lines.extend(_records_table(result['records']))
    return "\n".join(lines)


def format_compare_periods(result: dict[str, Any]) -> str:
    """Format compare_periods result as a terminal text block.

    Example output:
        Third Quarter 2025 vs First Half 2025 | 12 vs 11 records

        CHANGES (3)
        ──────────────────────────────────────────────────────────────────────
        Alpha Holding       Ownership %          50 → 60                Modified
        Beta Trading        New Record           (not existed) → ...    Added

        DELETED (1)
        ──────────────────────────────────────────────────────────────────────
        Gamma Logistics     2020202020
    """
    if not result.get("success"):
        return _error(result)

    previous = result['previous_period'] or "(no previous period)"
    lines = [
        f"{result['current_period']} vs {previous} | "
        f"{result['current_count']} vs {result['previous_count']} records",
        ""
    ]

    lines.append(f"CHANGES ({len(result['changes'])})")
    lines.append("─" * 70)
    if not result['changes']:
        lines.append("No changes detected between periods")
    for change in result['changes']:
        values = f"{change['previous_value'] or '(empty)'} → {change['current_value'] or '(empty)'}"
        lines.append(
            f"{_cut(change['entity_name'], 20):<20}{_cut(change['field'], 21):<21}"
            f"{_cut(values, 23):<23}{change['change_type']}"
        )

    lines.append("")
    lines.append(f"DELETED ({len(result['deleted'])})")
    lines.append("─" * 70)
    if not result['deleted']:
        lines.append("No records deleted between periods")
    for record in result['deleted']:
        lines.append(f"{_cut(record.get('entityNameEnglish'), 20):<20}{record.get('commercialRegistrationNumber') or ''}")

    return "\n".join(lines)


def format_generate_report(result: dict[str, Any]) -> str:
    """Format generate_report result as a terminal text block"""
    if not result.get("success"):
        return _error(result)

    scope = "consolidated" if result.get('consolidated') else "single dataset"
    size_kb = result['size_bytes'] / 1024
    return "\n".join([
        f"REPORT WRITTEN | {result['report_type']} | {scope}",
        "",
        f"FILE:  {result['filename']}",
        f"SIZE:  {size_kb:.0f} KB",
        f"PATH:  {result['path']}",
    ])


def format_list_periods(result: dict[str, Any]) -> str:
    """Format list_periods result as a terminal text block.

    Example output:
        neom | PERIODS
        ────────────────────────────────────────────────
        Period                Saved   Records  Locked
        First Half 2025       yes          10  yes
        Third Quarter 2025    yes          12  no
    """
    if not result.get("success"):
        return _error(result)

    lines = []
    if 'user' not in result:
        lines.append("REPORTING PERIODS")
        lines.append("─" * 48)
        lines.extend(result['periods'])
        lines.append("")
        lines.append(f"USERS ({len(result['users'])}): {', '.join(result['users']) or '(none)'}")
        lines.append(f"ADMIN: {result['admin_user']}")
        return "\n".join(lines)

    lines.append(f"{result['user']} | PERIODS")
    lines.append("─" * 48)
    lines.append(f"{'Period':<22}{'Saved':<8}{'Records':>7}  Locked")
    for status in result['periods']:
        saved = "yes" if status['saved'] else "no"
        locked = "yes" if status['locked'] else "no"
        lines.append(f"{status['period']:<22}{saved:<8}{status['count']:>7}  {locked}")
    return "\n".join(lines)


def format_submit_period(result: dict[str, Any]) -> str:
    """Format submit_period result as a short status block"""
    if not result.get("success"):
        return _error(result)

    lines = [f"{result['user']} | {result['period']} | {result['action'].upper()}"]
    if 'saved_count' in result:
        lines.append(f"RECORDS: {result['saved_count']}")
    if 'pushed_count' in result:
        lines.append(f"PUSHED:  {result['pushed_count']}")
    remote = result.get('remote')
    if remote:
        lines.append(f"REMOTE:  {remote.get('detail', remote)}")
    return "\n".join(lines)


def format_period_deadlines(result: dict[str, Any]) -> str:
    """Format period_deadlines result as a terminal text block.

    Example output:
        PERIOD DEADLINES (2)
        ──────────────────────────────────────────────────────────────────────
        Third Quarter 2025      2025-10-31T23:59:59Z      urgent    5 days
        Fourth Quarter 2025     2026-01-31T23:59:59Z      future    120 days
    """
    if not result.get("success"):
        return _error(result)

    if "deadline" in result:
        deadlines = [result["deadline"]] if result["deadline"] else []
    else:
        deadlines = result["deadlines"]

    title = {"next": "NEXT DEADLINE", "set": "DEADLINE SAVED"}.get(result["action"], "PERIOD DEADLINES")
    lines = [f"{title} ({len(deadlines)})", "─" * 70]
    if not deadlines:
        lines.append("No deadlines found")
    for deadline in deadlines:
        lines.append(
            f"{deadline['period']:<24}{_cut(deadline['dead_line'], 26):<26}"
            f"{deadline['status']:<10}{deadline['time_remaining']}"
        )
    return "\n".join(lines)


FORMATTERS = {
    "load_dataset": format_load_dataset,
    "save_dataset": format_save_dataset,
    "resolve_dataset": format_resolve_dataset,
    "combined_view": format_combined_view,
    "compare_periods": format_compare_periods,
    "generate_report": format_generate_report,
    "list_periods": format_list_periods,
    "submit_period": format_submit_period,
    "period_deadlines": format_period_deadlines,
}
