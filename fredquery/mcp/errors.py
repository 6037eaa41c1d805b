"""Exceptions raised by the MCP client session."""

from __future__ import annotations


class MCPError(Exception):
    """Base class for MCP session failures."""


class MCPTransportError(MCPError):
    """Raised when MCP transport communication fails."""


class MCPProcessError(MCPTransportError):
    """The MCP server process could not be started, died, or was disconnected."""


class MCPRemoteError(MCPError):
    """The MCP server answered a request with a JSON-RPC error object."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"MCP Error {code}: {message}")


class MCPTimeoutError(MCPError):
    """No response arrived for a request before its deadline."""

    def __init__(self, method: str, request_id: int):
        self.method = method
        self.request_id = request_id
        super().__init__(f"MCP request timeout for {method} (ID: {request_id})")


class MCPToolResultError(MCPError):
    """A tool result did not carry the expected text payload."""
