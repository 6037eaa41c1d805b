"""
FRED MCP server over stdio.

Serves the ``FredToolbox`` tools with the MCP SDK's low-level server. Logs go
to stderr, since stdout carries the protocol.

Run with ``python -m fredquery.fred.server`` or ``fredquery serve``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from fredquery import __version__
from fredquery.fred.request import FredClient
from fredquery.fred.tools import FredToolbox, ToolError
from fredquery.validation.config import Config

logger = logging.getLogger(__name__)

SERVER_NAME = "fred"
BANNER = "FRED MCP Server running on stdio"


def create_server(toolbox: FredToolbox) -> Server:
    """
    Build an MCP server exposing every tool in ``toolbox``.

    Arguments are checked by the toolbox's pydantic models rather than the
    SDK's JSON schema validation. Any exception raised by a tool, including
    ``ToolError``, reaches the client as a result with ``isError`` set.
    """
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [types.Tool(**definition) for definition in toolbox.list_tools()]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        try:
            payload = await toolbox.run(name, arguments)
        except ToolError:
            raise
        except Exception:
            logger.exception("Tool %s raised an unexpected error", name)
            raise
        return [types.TextContent(type="text", text=json.dumps(payload, indent=2))]

    return server


async def serve_stdio(config: Config) -> None:
    """Run the FRED MCP server on this process's stdin/stdout until EOF."""
    async with FredClient.from_config(config) as client:
        server = create_server(FredToolbox(client))
        async with stdio_server() as (read_stream, write_stream):
            logger.info(BANNER)
            await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("FRED MCP Server shutting down")


def run(config: Optional[Config] = None) -> int:
    """Blocking entry point. Returns the process exit code."""
    try:
        asyncio.run(serve_stdio(config or Config.load()))
    except KeyboardInterrupt:
        logger.info("FRED MCP Server interrupted")
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("mcp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    sys.exit(run())


if __name__ == "__main__":
    main()
