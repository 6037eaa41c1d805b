"""Tests for newline-delimited JSON framing."""

import json

from fredquery.mcp.framing import LineFramer


class TestEncode:
    """Tests for LineFramer.encode."""

    def test_single_terminated_line(self):
        """Test that a message becomes exactly one newline-terminated line."""
        line = LineFramer.encode({"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}})

        assert line.endswith(b"\n")
        assert line.count(b"\n") == 1
        assert json.loads(line) == {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}}

    def test_embedded_newlines_are_escaped(self):
        """Test that newlines inside strings do not break framing."""
        line = LineFramer.encode({"text": "a\nb"})

        assert line.count(b"\n") == 1


class TestFeed:
    """Tests for LineFramer.feed."""

    def test_complete_lines(self):
        """Test decoding several complete lines from one chunk."""
        framer = LineFramer()

        messages = list(framer.feed(b'{"id": 1}\n{"id": 2}\n'))

        assert messages == [{"id": 1}, {"id": 2}]
        assert framer.buffer == b""

    def test_partial_line_is_buffered(self):
        """Test that a fragment waits in the buffer until its newline arrives."""
        framer = LineFramer()

        assert list(framer.feed(b'{"id": 1}\n{"id"')) == [{"id": 1}]
        assert framer.buffer == b'{"id"'

        assert list(framer.feed(b': 2}\n')) == [{"id": 2}]
        assert framer.buffer == b""

    def test_arbitrary_chunking(self):
        """Test that every split of the stream yields the same messages in order."""
        stream = b'{"id": 1}\n{"id": 2, "result": {"x": "y"}}\n{"id": 3}\n{"tail": '

        for size in range(1, len(stream) + 1):
            framer = LineFramer()
            messages = []
            for start in range(0, len(stream), size):
                messages.extend(framer.feed(stream[start:start + size]))

            assert [m.get("id") for m in messages] == [1, 2, 3]
            assert framer.buffer == b'{"tail": '

    def test_buffer_updated_without_iterating(self):
        """Test that feeding updates the buffer even if the result is never consumed."""
        framer = LineFramer()

        framer.feed(b'{"id": 1}\n{"id"')

        assert framer.buffer == b'{"id"'

    def test_malformed_line_is_dropped(self):
        """Test that a bad line is skipped and later lines still decode."""
        framer = LineFramer()

        messages = list(framer.feed(b'not json\n{"id": 2}\n'))

        assert messages == [{"id": 2}]

    def test_non_object_is_dropped(self):
        """Test that JSON values other than objects are ignored."""
        framer = LineFramer()

        assert list(framer.feed(b'[1, 2]\n"text"\n{"id": 3}\n')) == [{"id": 3}]

    def test_blank_lines_skipped(self):
        """Test that empty and whitespace-only lines produce nothing."""
        framer = LineFramer()

        assert list(framer.feed(b'\n  \r\n{"id": 1}\r\n')) == [{"id": 1}]

    def test_str_chunks(self):
        """Test that text chunks are accepted as well as bytes."""
        framer = LineFramer()

        assert list(framer.feed('{"name": "café"}\n')) == [{"name": "café"}]

    def test_reset(self):
        """Test that reset discards the partial fragment."""
        framer = LineFramer()
        framer.feed(b'{"id": ')

        framer.reset()

        assert framer.buffer == b""
        assert list(framer.feed(b'{"id": 4}\n')) == [{"id": 4}]
