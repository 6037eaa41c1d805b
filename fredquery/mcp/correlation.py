"""Correlation of JSON-RPC responses to outstanding requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fredquery.mcp.errors import MCPTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """A request that has been sent and is waiting for its response."""

    request_id: int
    method: str
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None


class PendingRequests:
    """
    Table of in-flight requests keyed by JSON-RPC id.

    Every entry is settled exactly once: by ``resolve()``, ``reject()`` or its
    own deadline timer, whichever comes first. Later settlements for the same
    id find nothing and are ignored.
    """

    def __init__(self) -> None:
        self._pending: Dict[int, PendingRequest] = {}
        self._last_id = 0

    def next_id(self) -> int:
        """Return a fresh id, strictly greater than every id handed out before."""
        self._last_id += 1
        return self._last_id

    def register(self, request_id: int, method: str, timeout: Optional[float]) -> asyncio.Future:
        """Track ``request_id`` and return the future its caller awaits."""
        if request_id in self._pending:
            raise ValueError(f"Request ID {request_id} is already pending")

        loop = asyncio.get_running_loop()
        entry = PendingRequest(request_id=request_id, method=method, future=loop.create_future())
        if timeout is not None:
            entry.timer = loop.call_later(timeout, self.expire, request_id)
        self._pending[request_id] = entry
        return entry.future

    def resolve(self, request_id: int, value: Any) -> bool:
        entry = self._pop(request_id)
        if entry is None:
            return False
        if not entry.future.done():
            entry.future.set_result(value)
        return True

    def reject(self, request_id: int, error: BaseException) -> bool:
        entry = self._pop(request_id)
        if entry is None:
            return False
        if not entry.future.done():
            entry.future.set_exception(error)
        return True

    def expire(self, request_id: int) -> bool:
        """Deadline handler: fail the request with a timeout if still pending."""
        entry = self._pending.get(request_id)
        if entry is None:
            return False
        logger.warning("MCP request %s (ID: %d) timed out", entry.method, request_id)
        return self.reject(request_id, MCPTimeoutError(entry.method, request_id))

    def reject_all(self, error: BaseException) -> int:
        """Fail every pending request with ``error``. Returns how many were failed."""
        ids = list(self._pending)
        for request_id in ids:
            self.reject(request_id, error)
        return len(ids)

    def ids(self) -> List[int]:
        return list(self._pending)

    def _pop(self, request_id: int) -> Optional[PendingRequest]:
        entry = self._pending.pop(request_id, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()
        return entry

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)
