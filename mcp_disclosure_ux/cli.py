#!/usr/bin/env python3
"""
CLI for disclosure-ux MCP - test tools without MCP restart

Usage:
  disclosure-ux list-tools                                  # Show MCP tool definitions
  disclosure-ux load neom "Third Quarter 2025"              # Saved records
  disclosure-ux save neom "Third Quarter 2025" rows.json    # Replace dataset from a JSON array
  disclosure-ux resolve neom "Fourth Quarter 2025"          # Saved data or fallback draft
  disclosure-ux combined "Third Quarter 2025"               # Administrator combined view
  disclosure-ux compare neom "Third Quarter 2025"           # Changes and deletions
  disclosure-ux report neom "Third Quarter 2025"            # Write Excel report
  disclosure-ux report PIF_SubmitIQ "Third Quarter 2025" --admin --all-companies --type full-data
  disclosure-ux periods neom                                # Saved status per period
  disclosure-ux submit neom "Third Quarter 2025"            # Finalize and flag submitted
  disclosure-ux deadlines --action next                      # Next submission deadline
  disclosure-ux export > backup.json                        # Whole store as JSON
  disclosure-ux import backup.json                          # Replace whole store

Fast iteration: Uses hexagonal core directly (no MCP layer)
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from . import config
from .container import Container
from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .core import DisclosureError
from .core.domain import ROLE_ADMIN, ROLE_COMPANY
from .formatters import FORMATTERS


def build_handlers(args: argparse.Namespace) -> MCPHandlers:
    """Handlers over a container configured from env, overridden by CLI flags"""
    container = Container.from_env()
    if args.data_file or args.admin_user:
        container = Container(
            data_file=args.data_file or config.data_file(),
            admin_user=args.admin_user or config.admin_user(),
            company_users=config.company_users(),
            periods=container.periods,
            gateway=container.gateway
        )
    return MCPHandlers(container, report_dir=args.report_dir)


async def list_tools_command() -> int:
    """Show MCP tool definitions"""
    print("=" * 80)
    print("MCP TOOL DEFINITIONS")
    print("=" * 80)
    print()

    for tool_name, tool_schema in TOOL_SCHEMAS.items():
        print(f"Tool: {tool_schema['name']}")
        print(f"Claude sees: mcp__disclosure-ux__{tool_schema['name']}")
        print()
        print("Description:")
        print(tool_schema['description'])
        print()
        print("Input Schema:")
        print(json.dumps(tool_schema['inputSchema'], indent=2))
        print()
        print("-" * 80)
        print()

    return 0


async def tool_command(handlers: MCPHandlers, name: str, **kwargs) -> int:
    """Run one handler and print the text formatter output for its result"""
    result = await getattr(handlers, name)(**kwargs)
    print(FORMATTERS[name](result))
    return 0 if result["success"] else 1


def read_records(path: str) -> list[dict]:
    """JSON array of records, or an object with a "records" array"""
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get("records", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of records")
    return data


def main():
    parser = argparse.ArgumentParser(
        description="disclosure-ux CLI - Test MCP tools without server restart"
    )
    parser.add_argument(
        "--data-file",
        default=None,
        help="JSON store (default: $DISCLOSURE_DATA_FILE or /var/idio-mcp-cache/disclosures/data.json)"
    )
    parser.add_argument(
        "--admin-user",
        default=None,
        help="Administrator user id (default: $DISCLOSURE_ADMIN_USER or PIF_SubmitIQ)"
    )
    parser.add_argument(
        "--report-dir",
        default=config.report_dir(),
        help="Where reports are written (default: $DISCLOSURE_REPORT_DIR or ./reports)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log INFO messages to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # list-tools command
    subparsers.add_parser("list-tools", help="Show MCP tool definitions")

    # load command
    load_parser = subparsers.add_parser("load", help="Show saved records")
    load_parser.add_argument("user", help="User id (e.g., neom)")
    load_parser.add_argument("period", help="Period label (e.g., 'Third Quarter 2025')")

    # save command
    save_parser = subparsers.add_parser("save", help="Replace a dataset from a JSON file")
    save_parser.add_argument("user", help="User id")
    save_parser.add_argument("period", help="Period label")
    save_parser.add_argument("file", help="JSON array of records (camelCase keys)")
    save_parser.add_argument("--finalize", action="store_true", help="Clear draft flags while saving")

    # resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Saved data or fallback draft")
    resolve_parser.add_argument("user", help="User id")
    resolve_parser.add_argument("period", help="Period label")

    # combined command
    combined_parser = subparsers.add_parser("combined", help="Administrator combined view")
    combined_parser.add_argument("period", help="Period label")

    # compare and report share the scope flags
    for name, help_text in (("compare", "Changes between periods"), ("report", "Write Excel report")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("username", help="Caller user id")
        sub.add_argument("period", help="Current period label")
        sub.add_argument("--admin", action="store_true", help="Run as Administrator")
        sub.add_argument("--all-companies", action="store_true", help="Administrator: consolidated view")
        sub.add_argument("--company", dest="target_company", help="Administrator: target company")
        if name == "report":
            sub.add_argument("--type", dest="report_type", default="change-tracking",
                             choices=["change-tracking", "full-data"],
                             help="Report type (default: change-tracking)")
            highlight = sub.add_mutually_exclusive_group()
            highlight.add_argument("--highlight-ownership", dest="highlight", action="store_true",
                                   default=None, help="Flag changed ownership %%")
            highlight.add_argument("--no-highlight-ownership", dest="highlight", action="store_false",
                                   help="Do not flag changed ownership %%")

    # periods command
    periods_parser = subparsers.add_parser("periods", help="List periods")
    periods_parser.add_argument("user", nargs="?", help="Optional user id for saved status")

    # submit command
    submit_parser = subparsers.add_parser("submit", help="Submit, unsubmit, pull or push a period")
    submit_parser.add_argument("user", help="User id")
    submit_parser.add_argument("period", help="Period label")
    submit_parser.add_argument("--action", default="submit", choices=["submit", "unsubmit", "pull", "push"],
                               help="Action (default: submit)")
    submit_parser.add_argument("--record-id", help="unsubmit: a single record")
    submit_parser.add_argument("--remote", action="store_true", help="Mirror on the submission API")

    # deadlines command
    deadlines_parser = subparsers.add_parser("deadlines", help="List or set period submission deadlines")
    deadlines_parser.add_argument("--action", default="list", choices=["list", "upcoming", "next", "set"],
                                  help="Action (default: list)")
    deadlines_parser.add_argument("--year", type=int, help="list: deadlines from this year onwards")
    deadlines_parser.add_argument("--period", help="set: period label")
    deadlines_parser.add_argument("--dead-line", dest="dead_line", help="set: ISO date or timestamp")

    # export / import / reset-marks commands
    subparsers.add_parser("export", help="Print the whole store as JSON")
    import_parser = subparsers.add_parser("import", help="Replace the whole store from JSON")
    import_parser.add_argument("file", help="File written by export")
    subparsers.add_parser("reset-marks", help="Forget every save-status mark")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "list-tools":
        return asyncio.run(list_tools_command())

    try:
        handlers = build_handlers(args)
        store = handlers.container.store

        # Run command
        if args.command == "load":
            return asyncio.run(tool_command(handlers, "load_dataset", user=args.user, period=args.period))
        elif args.command == "save":
            return asyncio.run(tool_command(
                handlers, "save_dataset",
                user=args.user,
                period=args.period,
                records=read_records(args.file),
                finalize=args.finalize
            ))
        elif args.command == "resolve":
            return asyncio.run(tool_command(handlers, "resolve_dataset", user=args.user, period=args.period))
        elif args.command == "combined":
            return asyncio.run(tool_command(handlers, "combined_view", period=args.period))
        elif args.command == "compare":
            return asyncio.run(tool_command(
                handlers, "compare_periods",
                username=args.username,
                period=args.period,
                role=ROLE_ADMIN if args.admin else ROLE_COMPANY,
                include_all_companies=args.all_companies,
                target_company=args.target_company
            ))
        elif args.command == "report":
            return asyncio.run(tool_command(
                handlers, "generate_report",
                username=args.username,
                period=args.period,
                role=ROLE_ADMIN if args.admin else ROLE_COMPANY,
                report_type=args.report_type,
                include_all_companies=args.all_companies,
                target_company=args.target_company,
                highlight_ownership_changes=args.highlight
            ))
        elif args.command == "periods":
            return asyncio.run(tool_command(handlers, "list_periods", user=args.user))
        elif args.command == "submit":
            return asyncio.run(tool_command(
                handlers, "submit_period",
                user=args.user,
                period=args.period,
                action=args.action,
                record_id=args.record_id,
                remote=args.remote
            ))
        elif args.command == "deadlines":
            return asyncio.run(tool_command(
                handlers, "period_deadlines",
                action=args.action,
                year=args.year,
                period=args.period,
                dead_line=args.dead_line
            ))
        elif args.command == "export":
            print(store.export_json())
            return 0
        elif args.command == "import":
            store.import_json(Path(args.file).read_text(encoding='utf-8'))
            print(f"Imported {args.file}")
            return 0
        elif args.command == "reset-marks":
            store.reset_marks()
            print("Save-status marks cleared")
            return 0
        else:
            parser.print_help()
            return 1
    except (DisclosureError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
