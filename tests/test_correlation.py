"""Tests for request/response correlation."""

import asyncio

import pytest

from fredquery.mcp.correlation import PendingRequests
from fredquery.mcp.errors import MCPProcessError, MCPTimeoutError
from fredquery.mcp.session import MCPSession


class TestPendingRequests:
    """Tests for PendingRequests."""

    def test_ids_strictly_increase(self):
        """Test that every id is greater than all earlier ones."""
        table = PendingRequests()

        ids = [table.next_id() for _ in range(5)]

        assert ids == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_resolve(self):
        """Test that resolving settles the future and removes the entry."""
        table = PendingRequests()
        future = table.register(1, "tools/list", timeout=5)

        assert table.resolve(1, {"tools": []}) is True

        assert await future == {"tools": []}
        assert 1 not in table
        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_out_of_order_responses(self):
        """Test that responses are matched by id, not by arrival order."""
        table = PendingRequests()
        first = table.register(table.next_id(), "a", timeout=5)
        second = table.register(table.next_id(), "b", timeout=5)

        table.resolve(2, "second")
        table.resolve(1, "first")

        assert await first == "first"
        assert await second == "second"

    @pytest.mark.asyncio
    async def test_late_response_is_ignored(self):
        """Test that a second settlement for the same id has no effect."""
        table = PendingRequests()
        future = table.register(1, "ping", timeout=5)
        table.resolve(1, "once")

        assert table.resolve(1, "twice") is False
        assert table.reject(1, RuntimeError("late")) is False
        assert await future == "once"

    @pytest.mark.asyncio
    async def test_unknown_id_is_ignored(self):
        """Test that settling an id that was never registered is a no-op."""
        table = PendingRequests()

        assert table.resolve(42, {}) is False
        assert table.expire(42) is False

    @pytest.mark.asyncio
    async def test_duplicate_registration_rejected(self):
        """Test that an id cannot be pending twice."""
        table = PendingRequests()
        table.register(1, "ping", timeout=5)

        with pytest.raises(ValueError):
            table.register(1, "ping", timeout=5)
        table.resolve(1, None)

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that an unanswered request expires with the method and id."""
        table = PendingRequests()
        future = table.register(7, "tools/call", timeout=0.01)

        with pytest.raises(MCPTimeoutError) as exc_info:
            await future

        assert exc_info.value.method == "tools/call"
        assert exc_info.value.request_id == 7
        assert "tools/call" in str(exc_info.value)
        assert 7 not in table

    @pytest.mark.asyncio
    async def test_response_after_timeout_is_discarded(self):
        """Test that settling an expired id does nothing to its future."""
        table = PendingRequests()
        future = table.register(3, "tools/call", timeout=0.01)
        await asyncio.sleep(0.05)

        assert table.resolve(3, {"content": []}) is False
        assert table.reject(3, MCPProcessError("late")) is False
        assert table.expire(3) is False
        assert isinstance(future.exception(), MCPTimeoutError)

    @pytest.mark.asyncio
    async def test_session_drops_late_response(self):
        """Test that a response arriving after its deadline is dropped by the session."""
        session = MCPSession(command="unused")
        future = session.pending.register(4, "tools/call", timeout=0.01)
        await asyncio.sleep(0.05)

        session._dispatch({"jsonrpc": "2.0", "id": 4, "result": {"content": []}})
        session._dispatch({"jsonrpc": "2.0", "id": 4, "error": {"code": -32000, "message": "late"}})

        assert len(session.pending) == 0
        assert isinstance(future.exception(), MCPTimeoutError)
        assert future.exception().request_id == 4

    @pytest.mark.asyncio
    async def test_response_cancels_timer(self):
        """Test that a resolved request never times out afterwards."""
        table = PendingRequests()
        future = table.register(1, "ping", timeout=0.01)
        table.resolve(1, "ok")

        await asyncio.sleep(0.05)

        assert await future == "ok"

    @pytest.mark.asyncio
    async def test_reject_all(self):
        """Test that reject_all fails every pending request."""
        table = PendingRequests()
        futures = [table.register(table.next_id(), "m", timeout=5) for _ in range(3)]

        assert table.reject_all(MCPProcessError("gone")) == 3

        for future in futures:
            with pytest.raises(MCPProcessError):
                await future
        assert len(table) == 0
