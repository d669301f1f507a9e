#!/usr/bin/env python3
"""
MCP HTTP/SSE Server - Hexagonal Architecture

Clean HTTP/SSE server using dependency injection and hexagonal architecture.

Run with: uvicorn mcp_disclosure_ux.server_http:app --host 127.0.0.1 --port 5002

Configuration:
- PORT: Server port (default: 5002)
- DISCLOSURE_DATA_FILE: JSON store (default: /var/idio-mcp-cache/disclosures/data.json)
- DISCLOSURE_ADMIN_USER / DISCLOSURE_COMPANY_USERS: administrator and company user ids
- DISCLOSURE_REPORT_DIR: where generate_report writes workbooks
- SUBMISSION_API_URL / SUBMISSION_API_TOKEN: remote submission API (optional)
"""

import json
import logging
import signal
import sys
from datetime import datetime, timezone
from typing import Any

from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.types import TextContent, Tool
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from . import config
from .container import Container
from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .formatters import FORMATTERS

# Configure logging with millisecond precision
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y/%m/%d %H:%M:%S"
)


class MillisecondFormatter(logging.Formatter):
    """Custom formatter with milliseconds as :XXXX format"""
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Override formatTime to include milliseconds with : separator"""
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            s = ct.strftime(datefmt)
            ms = int((record.created % 1) * 10000)
            return f"{s}:{ms:04d}"
        return super().formatTime(record, datefmt)


# Apply custom formatter to root logger
for handler in logging.root.handlers:
    handler.setFormatter(MillisecondFormatter(
        "[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    ))

logger = logging.getLogger(__name__)

# Initialize dependency injection container
container = Container.from_env()

# Initialize MCP handlers
handlers = MCPHandlers(container, report_dir=config.report_dir())

# MCP Server instance
mcp_server = Server("disclosure-ux-mcp")

# SSE transport for multi-client support
sse_transport = SseServerTransport("/messages")


@mcp_server.list_tools()  # type: ignore[misc,no-untyped-call]
async def list_tools() -> list[Tool]:
    """List available MCP tools"""
    return [Tool(**schema) for schema in TOOL_SCHEMAS.values()]


@mcp_server.call_tool()  # type: ignore[misc,no-untyped-call]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls"""
    logger.info(f"call_tool: {name} args={sorted(arguments)}")

    try:
        result = await _dispatch_tool(name, arguments)
    except Exception as e:
        logger.error(f"call_tool: {name} FAILED: {e}")
        raise

    formatter = FORMATTERS.get(name)
    if formatter:
        formatted_text = formatter(result)
    else:
        formatted_text = json.dumps(result, indent=2)

    logger.info(f"call_tool: {name} returning {len(formatted_text)} chars")
    return [TextContent(type="text", text=formatted_text)]


async def _dispatch_tool(name: str, arguments: dict[str, Any]) -> Any:
    """Dispatch tool call to appropriate handler"""
    if name == "load_dataset":
        return await handlers.load_dataset(
            user=arguments["user"],
            period=arguments["period"]
        )

    elif name == "save_dataset":
        return await handlers.save_dataset(
            user=arguments["user"],
            period=arguments["period"],
            records=arguments["records"],
            finalize=arguments.get("finalize", False)
        )

    elif name == "resolve_dataset":
        return await handlers.resolve_dataset(
            user=arguments["user"],
            period=arguments["period"]
        )

    elif name == "combined_view":
        return await handlers.combined_view(period=arguments["period"])

    elif name == "compare_periods":
        return await handlers.compare_periods(
            username=arguments["username"],
            period=arguments["period"],
            role=arguments.get("role", "Company"),
            include_all_companies=arguments.get("include_all_companies", False),
            target_company=arguments.get("target_company")
        )

    elif name == "generate_report":
        return await handlers.generate_report(
            username=arguments["username"],
            period=arguments["period"],
            role=arguments.get("role", "Company"),
            report_type=arguments.get("report_type", "change-tracking"),
            include_all_companies=arguments.get("include_all_companies", False),
            target_company=arguments.get("target_company"),
            highlight_ownership_changes=arguments.get("highlight_ownership_changes"),
            output_dir=arguments.get("output_dir")
        )

    elif name == "list_periods":
        return await handlers.list_periods(user=arguments.get("user"))

    elif name == "submit_period":
        return await handlers.submit_period(
            user=arguments["user"],
            period=arguments["period"],
            action=arguments.get("action", "submit"),
            record_id=arguments.get("record_id"),
            remote=arguments.get("remote", False)
        )

    elif name == "period_deadlines":
        return await handlers.period_deadlines(
            action=arguments.get("action", "list"),
            year=arguments.get("year"),
            period=arguments.get("period"),
            dead_line=arguments.get("dead_line")
        )

    else:
        raise ValueError(f"Unknown tool: {name}")


# HTTP routes
async def handle_ping(request: Request) -> Response:
    """Health check endpoint"""
    return JSONResponse({"status": "ok"})


async def handle_sse(request: Request) -> Response:
    """SSE endpoint for MCP communication"""
    client_addr = request.client.host if request.client else "unknown"
    logger.info(f"SSE connect from {client_addr}")
    async with sse_transport.connect_sse(
        request.scope, request.receive, request._send
    ) as streams:
        logger.info(f"SSE session started for {client_addr}")
        await mcp_server.run(
            streams[0], streams[1], mcp_server.create_initialization_options()
        )
        logger.info(f"SSE disconnect from {client_addr}")
    return Response()


routes = [
    Route("/ping", handle_ping),
    Route("/sse", handle_sse),
    Mount("/messages", app=sse_transport.handle_post_message),
]

app = Starlette(debug=True, routes=routes)


# Graceful shutdown on SIGTERM
def handle_sigterm(signum, frame):
    logger.info("Received SIGTERM, shutting down gracefully...")
    sys.exit(0)


signal.signal(signal.SIGTERM, handle_sigterm)


if __name__ == "__main__":
    import uvicorn
    port = config.port()
    logger.info(f"Starting MCP HTTP server on port {port}")
    uvicorn.run(app, host="127.0.0.1", port=port)
