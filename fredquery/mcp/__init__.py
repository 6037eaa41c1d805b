"""
FredQuery MCP client.

Speaks newline-delimited JSON-RPC 2.0 with an MCP server that runs as a
child process:

    caller -> MCPSession -> LineFramer -> child stdin
    child stdout -> LineFramer -> PendingRequests -> MCPSession -> caller
"""

from fredquery.mcp.correlation import PendingRequest, PendingRequests
from fredquery.mcp.errors import (
    MCPError,
    MCPProcessError,
    MCPRemoteError,
    MCPTimeoutError,
    MCPToolResultError,
    MCPTransportError,
)
from fredquery.mcp.framing import LineFramer
from fredquery.mcp.schema import ToolContent, ToolInvocationResult
from fredquery.mcp.session import MCPSession, SessionState
from fredquery.mcp.transport import StdioProcess

__all__ = [
    "LineFramer",
    "MCPError",
    "MCPProcessError",
    "MCPRemoteError",
    "MCPSession",
    "MCPTimeoutError",
    "MCPToolResultError",
    "MCPTransportError",
    "PendingRequest",
    "PendingRequests",
    "SessionState",
    "StdioProcess",
    "ToolContent",
    "ToolInvocationResult",
]
