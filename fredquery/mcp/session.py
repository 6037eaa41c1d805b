"""JSON-RPC session with an MCP server running as a child process."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import ValidationError

from fredquery import __version__
from fredquery.mcp.correlation import PendingRequests
from fredquery.mcp.errors import MCPError, MCPProcessError, MCPRemoteError, MCPToolResultError
from fredquery.mcp.framing import LineFramer
from fredquery.mcp.schema import ToolInvocationResult
from fredquery.mcp.transport import StdioProcess

if TYPE_CHECKING:
    from fredquery.validation.config import Config

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
CLIENT_NAME = "fredquery"


def _remote_error(error: Any) -> MCPRemoteError:
    """Build the exception for a response's ``error`` member, whatever its shape."""
    if not isinstance(error, dict):
        return MCPRemoteError(-32603, str(error))
    code = error.get("code")
    return MCPRemoteError(
        code if isinstance(code, int) else -32603,
        str(error.get("message", "Unknown error")),
    )


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MCPSession:
    """
    Request/response/notification exchange with one MCP server process.

    The session owns exactly one ``StdioProcess``, one ``PendingRequests``
    table and the framer that encodes outbound messages. Responses are
    matched to requests by id, so they may arrive in any order.

    The process is spawned lazily: ``call_tool()`` and ``list_tools()``
    connect first when needed, which also covers reconnecting after
    ``disconnect()`` or a crash.

    Example:
        >>> async with MCPSession("python", ["-m", "fredquery.fred.server"]) as session:
        ...     result = await session.call_tool("fred_search", {"search_text": "payrolls"})
        ...     data = result.payload()
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        request_timeout: Optional[float] = 15.0,
        startup_grace: float = 2.0,
        stderr_banner: Optional[str] = "FRED MCP Server",
    ):
        self.command = command
        self.args = args or []
        self.env = env or {}
        self.request_timeout = request_timeout
        self.startup_grace = startup_grace
        self.stderr_banner = stderr_banner
        self.state = SessionState.DISCONNECTED
        self.server_info: Dict[str, Any] = {}
        self._pending = PendingRequests()
        self._process: Optional[StdioProcess] = None
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: "Config") -> "MCPSession":
        """Build a session for the MCP server described in ``config``."""
        mcp = config.merged.mcp
        return cls(
            command=mcp.command,
            args=list(mcp.args),
            env=config.child_env(),
            request_timeout=mcp.request_timeout,
            startup_grace=mcp.startup_grace,
            stderr_banner=mcp.stderr_banner,
        )

    @property
    def is_connected(self) -> bool:
        return self.state is SessionState.CONNECTED

    @property
    def pending(self) -> PendingRequests:
        return self._pending

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Spawn the server and complete the handshake. No-op when connected."""
        if self.is_connected:
            return

        async with self._connect_lock:
            if self.is_connected:
                return

            self.state = SessionState.CONNECTING
            process = StdioProcess(
                command=self.command,
                args=self.args,
                env=self.env,
                stderr_banner=self.stderr_banner,
            )
            try:
                await process.start(self._dispatch, self._on_process_exit)
                self._process = process

                # Give the server time to come up before the handshake.
                await asyncio.sleep(self.startup_grace)
                await self.initialize()
            except Exception:
                self.state = SessionState.DISCONNECTED
                self._process = None
                await process.stop()
                raise

        logger.info("Connected to MCP server (pid %s)", process.pid)

        try:
            listed = await self.send_request("tools/list")
            tools = listed.get("tools", []) if isinstance(listed, dict) else []
            logger.info("Available MCP tools: %s", [tool.get("name") for tool in tools])
        except MCPError as exc:
            logger.warning("Could not list MCP tools after connecting: %s", exc)

    async def disconnect(self) -> None:
        """Kill the server process and fail whatever is still pending."""
        process, self._process = self._process, None
        if process is None and self.state is SessionState.DISCONNECTED:
            return

        self.state = SessionState.DISCONNECTED
        failed = self._pending.reject_all(MCPProcessError("MCP session disconnected"))
        if failed:
            logger.warning("Disconnect failed %d pending MCP request(s)", failed)
        if process is not None:
            await process.stop()
        logger.info("Disconnected from MCP server")

    async def __aenter__(self) -> "MCPSession":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # ── JSON-RPC ──────────────────────────────────────────────────────────

    async def send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and wait for the matching response's result."""
        process = self._process
        if process is None:
            raise MCPProcessError("MCP server is not running")

        request_id = self._pending.next_id()
        future = self._pending.register(request_id, method, self.request_timeout)
        request = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or {},
        }

        try:
            await process.write(LineFramer.encode(request))
        except MCPError as exc:
            self._pending.reject(request_id, exc)
        else:
            logger.debug("Sent MCP request: %s with ID: %d", method, request_id)

        return await future

    async def send_notification(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Send a notification. The server sends nothing back."""
        process = self._process
        if process is None:
            raise MCPProcessError("MCP server is not running")

        notification = {"jsonrpc": "2.0", "method": method, "params": params or {}}
        await process.write(LineFramer.encode(notification))
        logger.debug("Sent MCP notification: %s", method)

    def _dispatch(self, message: Dict[str, Any]) -> None:
        """Route one inbound message from the server."""
        if "method" in message:
            logger.debug("Ignoring server-initiated MCP message: %s", message.get("method"))
            return

        request_id = message.get("id")
        if not isinstance(request_id, int) or isinstance(request_id, bool):
            logger.warning("Dropping MCP response with invalid ID: %s", str(message)[:200])
            return

        if "error" in message:
            exc = _remote_error(message["error"])
            if self._pending.reject(request_id, exc):
                logger.debug("MCP error response for ID %s: %s", request_id, exc)
                return
        elif "result" in message:
            if self._pending.resolve(request_id, message["result"]):
                logger.debug("Received MCP response for ID %s", request_id)
                return
        else:
            logger.warning("Dropping malformed MCP message: %s", str(message)[:200])
            return

        logger.debug("Discarding unmatched MCP response with ID %s", request_id)

    def _on_process_exit(self, returncode: Optional[int]) -> None:
        self._process = None
        self.state = SessionState.DISCONNECTED
        self._pending.reject_all(MCPProcessError(f"MCP server exited with code {returncode}"))

    # ── MCP Protocol ──────────────────────────────────────────────────────

    async def initialize(self) -> Dict[str, Any]:
        """Perform the MCP initialize handshake and mark the session connected."""
        result = await self.send_request("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "clientInfo": {"name": CLIENT_NAME, "version": __version__},
        })
        self.server_info = result.get("serverInfo", {}) if isinstance(result, dict) else {}
        logger.debug("MCP initialize result: %s", result)

        await self.send_notification("initialized")
        self.state = SessionState.CONNECTED
        return result

    async def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch the tool list from the MCP server."""
        if not self.is_connected:
            await self.connect()
        result = await self.send_request("tools/list")
        return result.get("tools", []) if isinstance(result, dict) else []

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolInvocationResult:
        """Call a tool on the MCP server, connecting first if needed."""
        if not self.is_connected:
            await self.connect()

        logger.info("Calling MCP tool: %s", name)
        logger.debug("MCP tool %s arguments: %s", name, arguments)
        try:
            result = await self.send_request("tools/call", {"name": name, "arguments": arguments or {}})
        except MCPError as exc:
            logger.error("MCP tool %s failed: %s", name, exc)
            raise
        try:
            return ToolInvocationResult.model_validate(result or {})
        except ValidationError as exc:
            raise MCPToolResultError(f"Malformed result from tool {name}: {exc}")
