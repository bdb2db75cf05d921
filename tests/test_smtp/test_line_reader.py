"""Tests for the fixed-capacity line reader."""

from __future__ import annotations

import asyncio

import pytest

from dumptruck.smtp.line_reader import read_line


def _reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


@pytest.mark.asyncio
class TestReadLine:
    async def test_crlf_line(self):
        line = await read_line(_reader(b"EHLO example.com\r\n"))
        assert line == b"EHLO example.com\r\n"
        assert len(line) == len(b"EHLO example.com\r\n")

    async def test_lf_only_line(self):
        assert await read_line(_reader(b"QUIT\n")) == b"QUIT\n"

    async def test_stops_at_first_newline(self):
        reader = _reader(b"HELO a\r\nMAIL FROM:<x@y>\r\n")
        assert await read_line(reader) == b"HELO a\r\n"
        assert await read_line(reader) == b"MAIL FROM:<x@y>\r\n"

    async def test_bare_cr_is_not_terminator(self):
        line = await read_line(_reader(b"one\rtwo\n"))
        assert line == b"one\rtwo\n"

    async def test_empty_line(self):
        assert await read_line(_reader(b"\n")) == b"\n"

    async def test_eof_before_terminator_raises(self):
        with pytest.raises(ConnectionError):
            await read_line(_reader(b"partial line without newline"))

    async def test_eof_on_empty_stream_raises(self):
        with pytest.raises(ConnectionError):
            await read_line(_reader(b""))

    async def test_overlong_line_truncated_without_desync(self):
        reader = _reader(b"abcdefgh\nNEXT\n")
        assert await read_line(reader, capacity=5) == b"abcde"
        # 초과분은 소비되었으므로 다음 줄이 온전히 읽힌다
        assert await read_line(reader, capacity=5) == b"NEXT\n"

    async def test_line_exactly_at_capacity(self):
        reader = _reader(b"1234\n")
        assert await read_line(reader, capacity=5) == b"1234\n"

    async def test_never_exceeds_capacity(self):
        data = b"X" * 5000 + b"\r\n"
        line = await read_line(_reader(data), capacity=1024)
        assert len(line) == 1024
        assert line == b"X" * 1024

    async def test_line_split_across_feeds(self):
        reader = asyncio.StreamReader()
        reader.feed_data(b"RCPT TO:")

        async def _late_feed():
            await asyncio.sleep(0.01)
            reader.feed_data(b"<a@b.com>\r\n")

        feeder = asyncio.create_task(_late_feed())
        line = await read_line(reader)
        await feeder
        assert line == b"RCPT TO:<a@b.com>\r\n"

    async def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            await read_line(_reader(b"x\n"), capacity=0)
