"""고정 용량 버퍼로 피어로부터 한 줄을 읽는다."""

from __future__ import annotations

import asyncio

DEFAULT_LINE_CAPACITY = 1024


async def read_line(reader: asyncio.StreamReader, capacity: int = DEFAULT_LINE_CAPACITY) -> bytes:
    """스트림에서 '\\n'으로 끝나는 한 줄을 바이트 단위로 읽는다.

    반환값은 개행을 포함한다. capacity를 넘는 바이트는 버퍼에 저장하지 않지만
    종결자가 나올 때까지 스트림에서 계속 소비하므로 다음 읽기가 어긋나지 않는다.
    단독 '\\r'은 종결자로 취급하지 않는다.

    종결자 전에 EOF 또는 I/O 오류가 나면 ConnectionError를 발생시키고
    부분 데이터는 버린다.
    """
    if capacity < 1:
        raise ValueError("capacity must be positive")

    buf = bytearray()
    while True:
        try:
            datum = await reader.read(1)
        except OSError as exc:
            raise ConnectionError(f"read failed: {exc}") from exc
        if not datum:
            raise ConnectionError("peer closed connection")

        if len(buf) < capacity:
            buf += datum
        if datum == b"\n":
            return bytes(buf)
