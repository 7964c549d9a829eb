"""MCP stdio server exposing the SonarCloud issue tools."""

import asyncio
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from sonarcloud_issues.reports.issues import IssueFetcher
from sonarcloud_issues.tools import TOOLS, call_tool as run_tool

logger = logging.getLogger(__name__)


def create_server(fetcher: IssueFetcher | None = None) -> Server:
    """Build the MCP server. *fetcher* is shared by every tool call."""
    app = Server("sonarcloud-issues")
    issue_fetcher = fetcher or IssueFetcher()

    @app.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(name=t["name"], description=t["description"], inputSchema=t["inputSchema"])
            for t in TOOLS
        ]

    @app.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        logger.debug("Tool call %s", name)
        # Blocking HTTP runs in a worker thread so the session keeps serving.
        # Errors propagate; the MCP layer reports them as tool errors
        text = await asyncio.to_thread(run_tool, name, arguments, fetcher=issue_fetcher)
        return [TextContent(type="text", text=text)]

    return app


async def _run(app: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def serve(fetcher: IssueFetcher | None = None) -> None:
    """Run the server on stdin/stdout until the client disconnects."""
    issue_fetcher = fetcher or IssueFetcher()
    try:
        asyncio.run(_run(create_server(issue_fetcher)))
    finally:
        issue_fetcher.close()
