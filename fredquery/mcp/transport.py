"""MCP server child process with stdio pipes."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from fredquery.mcp.errors import MCPProcessError
from fredquery.mcp.framing import LineFramer

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
STDOUT_CLOSE_GRACE = 1.0

MessageHandler = Callable[[Dict[str, Any]], None]
ExitHandler = Callable[[Optional[int]], None]


class StdioProcess:
    """
    Own one MCP server subprocess and its three pipes.

    Bytes read from stdout go through a ``LineFramer`` and every decoded
    message is handed to ``on_message``. Stderr is forwarded to the log.
    If the process exits without ``stop()`` having been called, ``on_exit``
    receives its return code.
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        stderr_banner: Optional[str] = None,
    ):
        self.command = command
        self.args = args or []
        self.env = env or {}
        self.stderr_banner = stderr_banner
        self._process: Optional[asyncio.subprocess.Process] = None
        self._framer = LineFramer()
        self._write_lock = asyncio.Lock()
        self._tasks: List[asyncio.Task] = []
        self._stopping = False
        self._on_message: Optional[MessageHandler] = None
        self._on_exit: Optional[ExitHandler] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def start(self, on_message: MessageHandler, on_exit: ExitHandler) -> None:
        """Spawn the MCP server subprocess and start pumping its output."""
        if self.is_running:
            return

        self._on_message = on_message
        self._on_exit = on_exit
        self._stopping = False
        self._framer.reset()

        merged_env = {**os.environ, **self.env}
        logger.info("Starting MCP server: %s %s", self.command, " ".join(self.args))
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=merged_env,
            )
        except FileNotFoundError:
            raise MCPProcessError(f"MCP server command not found: {self.command}")
        except PermissionError as exc:
            raise MCPProcessError(f"Cannot execute MCP server command {self.command}: {exc}")

        self._tasks = [
            asyncio.create_task(self._pump_stdout(self._process, self._process.stdout)),
            asyncio.create_task(self._pump_stderr(self._process.stderr)),
            asyncio.create_task(self._watch_exit(self._process)),
        ]

    async def stop(self) -> None:
        """Kill the MCP server subprocess. Safe to call more than once."""
        self._stopping = True
        process, self._process = self._process, None

        if process is not None and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning("MCP server (pid %s) did not exit after kill", process.pid)

        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()
        self._tasks = []

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    # ── I/O ───────────────────────────────────────────────────────────────

    async def write(self, data: bytes) -> None:
        """Write one complete line to the server's stdin."""
        async with self._write_lock:
            if not self.is_running or self._process.stdin is None:
                raise MCPProcessError("MCP server is not running")
            try:
                self._process.stdin.write(data)
                await self._process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                raise MCPProcessError(f"MCP transport error: {exc}")

    async def _pump_stdout(self, process: asyncio.subprocess.Process, stream: asyncio.StreamReader) -> None:
        try:
            while True:
                chunk = await stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                for message in self._framer.feed(chunk):
                    try:
                        self._on_message(message)
                    except Exception:
                        logger.exception("Failed to handle MCP message: %s", str(message)[:200])
        except (OSError, ValueError) as exc:
            logger.error("Reading MCP server output failed: %s", exc)

        if self._stopping:
            return
        # The child can no longer answer; once it exits, pending requests fail.
        try:
            await asyncio.wait_for(process.wait(), timeout=STDOUT_CLOSE_GRACE)
        except asyncio.TimeoutError:
            logger.error("MCP server (pid %s) closed its output but kept running, killing it", process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def _pump_stderr(self, stream: asyncio.StreamReader) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            if self.stderr_banner and self.stderr_banner in line:
                logger.debug("MCP server: %s", line)
            else:
                logger.warning("MCP server stderr: %s", line)

    async def _watch_exit(self, process: asyncio.subprocess.Process) -> None:
        returncode = await process.wait()
        if self._stopping:
            return
        logger.error("MCP server (pid %s) exited with code %s", process.pid, returncode)
        if self._process is process:
            self._process = None
        if self._on_exit is not None:
            self._on_exit(returncode)
