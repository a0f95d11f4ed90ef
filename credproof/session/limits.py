"""Stream framing helpers with size limits and timeouts."""

from __future__ import annotations

import struct
from typing import Any, Optional, Tuple

import trio

from .constants import MAX_CONTROL_MESSAGE_BYTES
from .errors import SchemaError, SizeLimitError

# Every control message fits in one text frame.
MAX_FRAME_BYTES = MAX_CONTROL_MESSAGE_BYTES
READ_TIMEOUT = 5.0
WRITE_TIMEOUT = 5.0

FRAME_HELLO = 0x00
FRAME_TEXT = 0x01
FRAME_BINARY = 0x02
FRAME_KINDS = frozenset({FRAME_HELLO, FRAME_TEXT, FRAME_BINARY})

_HEADER = struct.Struct(">IB")


async def read_exact(stream: Any, size: int, timeout: Optional[float]) -> bytes:
    if size < 0:
        raise SchemaError("invalid read size")
    data = bytearray()
    with trio.fail_after(timeout if timeout is not None else float("inf")):
        while len(data) < size:
            chunk = await stream.read(size - len(data))
            if not chunk:
                raise SchemaError("unexpected EOF")
            data.extend(chunk)
    return bytes(data)


async def read_frame(
    stream: Any, max_bytes: int = MAX_FRAME_BYTES, timeout: float = READ_TIMEOUT
) -> Optional[Tuple[int, bytes]]:
    """
    Read one ``len32be || kind || payload`` frame.

    Waits indefinitely for a frame to start; ``timeout`` applies once its
    first byte has arrived. Returns None on a clean EOF between frames.
    """
    first = await stream.read(1)
    if not first:
        return None
    rest = await read_exact(stream, _HEADER.size - 1, timeout)
    length, kind = _HEADER.unpack(first + rest)
    if kind not in FRAME_KINDS:
        raise SchemaError("unknown frame kind")
    if length > max_bytes:
        raise SizeLimitError("frame too large")
    payload = await read_exact(stream, length, timeout)
    return kind, payload


async def write_frame(
    stream: Any,
    kind: int,
    payload: bytes,
    max_bytes: int = MAX_FRAME_BYTES,
    timeout: float = WRITE_TIMEOUT,
) -> None:
    if kind not in FRAME_KINDS:
        raise SchemaError("unknown frame kind")
    if len(payload) > max_bytes:
        raise SizeLimitError("frame too large")
    header = _HEADER.pack(len(payload), kind)
    with trio.fail_after(timeout):
        await stream.write(header + payload)
