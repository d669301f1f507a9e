"""
disclosure-ux MCP Server

MCP delivery layer - wraps the shared handlers as FastMCP tools.
Separation of concerns: this file only handles MCP protocol.
"""
import argparse
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from . import config
from .adapters.mcp import MCPHandlers
from .container import Container

logger = logging.getLogger(__name__)

# Initialize MCP server with HTTP config
mcp = FastMCP("disclosure-ux", host="0.0.0.0", port=config.port())

_handlers: Optional[MCPHandlers] = None


def get_handlers() -> MCPHandlers:
    """Handlers over a container built from the environment on first use"""
    global _handlers
    if _handlers is None:
        _handlers = MCPHandlers(Container.from_env(), report_dir=config.report_dir())
    return _handlers


@mcp.tool()
async def load_dataset(user: str, period: str) -> dict:
    """
    Load a user's saved records for one period.

    Args:
        user: User id owning the dataset (e.g. "neom")
        period: Period label (e.g. "Third Quarter 2025")

    Returns:
        Records in camelCase form, plus has_saved and locked flags
    """
    return await get_handlers().load_dataset(user=user, period=period)


@mcp.tool()
async def save_dataset(user: str, period: str, records: list[dict[str, Any]], finalize: bool = False) -> dict:
    """
    Replace a user's dataset for one period.

    Read-only rows are never saved; the count of dropped rows is returned.
    With finalize=True the draft flags are cleared as part of the save.
    """
    return await get_handlers().save_dataset(user=user, period=period, records=records, finalize=finalize)


@mcp.tool()
async def resolve_dataset(user: str, period: str) -> dict:
    """
    Dataset a user sees for a period.

    Own saved data if the period was saved, otherwise a draft derived from
    the previous period (fresh ids, flagged is_from_previous_quarter).
    """
    return await get_handlers().resolve_dataset(user=user, period=period)


@mcp.tool()
async def combined_view(period: str) -> dict:
    """Administrator view: admin records (with fallback) then company records (read-only)"""
    return await get_handlers().combined_view(period=period)


@mcp.tool()
async def compare_periods(
    username: str,
    period: str,
    role: str = "Company",
    include_all_companies: bool = False,
    target_company: Optional[str] = None
) -> dict:
    """
    Field-level changes and deleted records between a period and the one before.

    Example:
        compare_periods("neom", "Third Quarter 2025")
        → {changes: [{entity_name, field, previous_value, current_value, change_type}], deleted: [...]}
    """
    return await get_handlers().compare_periods(
        username=username,
        period=period,
        role=role,
        include_all_companies=include_all_companies,
        target_company=target_company
    )


@mcp.tool()
async def generate_report(
    username: str,
    period: str,
    role: str = "Company",
    report_type: str = "change-tracking",
    include_all_companies: bool = False,
    target_company: Optional[str] = None,
    highlight_ownership_changes: Optional[bool] = None,
    output_dir: Optional[str] = None
) -> dict:
    """
    Write an Excel comparison report to disk and return its path.

    Args:
        username: Caller user id
        period: Current period label
        role: "Administrator" or "Company"
        report_type: "change-tracking" (with changes/deletions sections) or "full-data"
        include_all_companies: Administrator only, consolidated report with Summary sheet
        target_company: Administrator only, report on one company's data
        highlight_ownership_changes: Override the per-mode default
        output_dir: Directory for the workbook (default: DISCLOSURE_REPORT_DIR)
    """
    return await get_handlers().generate_report(
        username=username,
        period=period,
        role=role,
        report_type=report_type,
        include_all_companies=include_all_companies,
        target_company=target_company,
        highlight_ownership_changes=highlight_ownership_changes,
        output_dir=output_dir
    )


@mcp.tool()
async def list_periods(user: Optional[str] = None) -> dict:
    """List reporting periods; with a user, also saved status, counts and locks"""
    return await get_handlers().list_periods(user=user)


@mcp.tool()
async def submit_period(
    user: str,
    period: str,
    action: str = "submit",
    record_id: Optional[str] = None,
    remote: bool = False
) -> dict:
    """
    Submit, unsubmit, pull or push a period.

    submit/unsubmit change local submission state (remote=True mirrors it on
    the submission API); pull/push sync the dataset with the API.
    """
    return await get_handlers().submit_period(
        user=user,
        period=period,
        action=action,
        record_id=record_id,
        remote=remote
    )


@mcp.tool()
async def period_deadlines(
    action: str = "list",
    year: Optional[int] = None,
    period: Optional[str] = None,
    dead_line: Optional[str] = None
) -> dict:
    """
    List, look up or set submission deadlines per reporting period.

    Args:
        action: "list", "upcoming", "next" or "set"
        year: list only, deadlines from this year onwards
        period: set only, period label (e.g. "Third Quarter 2026")
        dead_line: set only, ISO date or timestamp in the future
    """
    return await get_handlers().period_deadlines(
        action=action,
        year=year,
        period=period,
        dead_line=dead_line
    )


def main():
    """Main entry point for the MCP server."""
    parser = argparse.ArgumentParser(
        description="disclosure-ux: ownership disclosure datasets and period reports over MCP."
    )
    parser.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "streamable-http"],
        help="Transport method (default: stdio)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to for HTTP transport (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.port(),
        help="Port to bind to for HTTP transport (default: $PORT or 5002)"
    )
    args = parser.parse_args()

    mcp.settings.host = args.host
    mcp.settings.port = args.port

    # Run the server
    if args.transport == "streamable-http":
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
        logger.info(f"Starting disclosure-ux on http://{args.host}:{args.port}")
        logger.info(f"Data file: {config.data_file()}")
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
