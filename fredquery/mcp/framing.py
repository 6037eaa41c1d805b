"""Newline-delimited JSON framing for the stdio transport."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Union

logger = logging.getLogger(__name__)


class LineFramer:
    """
    Encode outbound messages as JSON lines and reassemble inbound ones.

    Bytes from the child process arrive in arbitrary chunks. ``feed()`` keeps
    whatever follows the last newline in an internal buffer until the rest of
    that line shows up. Lines that do not decode to a JSON object are dropped
    and logged; they never raise.
    """

    def __init__(self) -> None:
        self._buffer = b""

    @staticmethod
    def encode(message: Dict[str, Any]) -> bytes:
        """Serialize one message as a single newline-terminated line."""
        return (json.dumps(message, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")

    @property
    def buffer(self) -> bytes:
        """The incomplete trailing fragment not yet terminated by a newline."""
        return self._buffer

    def feed(self, chunk: Union[bytes, str]) -> Iterator[Dict[str, Any]]:
        """Append ``chunk`` and yield every message completed by it, in order."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")

        # Split now so the buffer is updated even if the caller never iterates.
        *lines, self._buffer = (self._buffer + chunk).split(b"\n")
        return self._decode(lines)

    @staticmethod
    def _decode(lines: List[bytes]) -> Iterator[Dict[str, Any]]:
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            try:
                message = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("Failed to parse MCP message: %r", line[:200])
                continue
            if not isinstance(message, dict):
                logger.warning("Ignoring non-object MCP message: %r", line[:200])
                continue
            yield message

    def reset(self) -> None:
        self._buffer = b""
