"""
Paired channels: the ordered, bidirectional pipe a SessionTransport wraps.

A channel carries two kinds of item: ``str`` (application control text) and
``bytes`` (opaque secure-computation protocol messages). Pairing itself is
out of band; the join code only names the pairing.

Two implementations live here:
    - LoopbackChannel: in-process pair, for tests and same-process demos
    - StreamChannel: framed channel over a byte stream with read/write/close
      (a libp2p network stream, for example)
"""

from __future__ import annotations

import logging
import math
from typing import Any, Awaitable, Callable, Protocol, Tuple, Union

import trio

from ..disclosure.security import constant_time_compare
from .constants import PAIRING_PROTOCOL_ID
from .errors import ProtocolError, TransportError
from .limits import FRAME_BINARY, FRAME_HELLO, FRAME_TEXT, read_frame, write_frame

logger = logging.getLogger(__name__)

ChannelItem = Union[str, bytes]


class PairedChannel(Protocol):
    join_code: str

    async def wait_ready(self) -> None:
        """Suspend until the pairing is established."""
        ...

    async def send(self, item: ChannelItem) -> None:
        ...

    async def receive(self) -> ChannelItem:
        """Next inbound item; raises trio.EndOfChannel once the peer closes."""
        ...

    async def aclose(self) -> None:
        ...


class LoopbackChannel:
    """One end of an in-process channel pair."""

    def __init__(
        self,
        join_code: str,
        send_channel: trio.MemorySendChannel,
        receive_channel: trio.MemoryReceiveChannel,
        ready: trio.Event,
    ) -> None:
        self.join_code = join_code
        self._send_channel = send_channel
        self._receive_channel = receive_channel
        self._ready = ready

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def send(self, item: ChannelItem) -> None:
        if not isinstance(item, (str, bytes)):
            raise TypeError("channel items must be str or bytes")
        try:
            await self._send_channel.send(item)
        except (trio.BrokenResourceError, trio.ClosedResourceError) as exc:
            raise TransportError("loopback peer is gone") from exc

    async def receive(self) -> ChannelItem:
        try:
            return await self._receive_channel.receive()
        except trio.ClosedResourceError as exc:
            raise TransportError("loopback channel closed locally") from exc

    async def aclose(self) -> None:
        await self._send_channel.aclose()
        await self._receive_channel.aclose()


def open_loopback_pair(join_code: str) -> Tuple[LoopbackChannel, LoopbackChannel]:
    """Create two connected channel ends, already paired."""
    a_send, b_receive = trio.open_memory_channel(math.inf)
    b_send, a_receive = trio.open_memory_channel(math.inf)
    ready = trio.Event()
    ready.set()
    return (
        LoopbackChannel(join_code, a_send, a_receive, ready),
        LoopbackChannel(join_code, b_send, b_receive, ready),
    )


class StreamChannel:
    """
    Channel over a byte stream exposing ``read(n)``, ``write(data)`` and
    ``close()`` coroutines.

    ``wait_ready`` runs the join-code hello: the initiator sends the code,
    the acceptor checks it and closes the stream on mismatch.
    """

    def __init__(self, stream: Any, join_code: str, *, initiator: bool) -> None:
        self.join_code = join_code
        self._stream = stream
        self._initiator = initiator
        self._send_lock = trio.Lock()
        self._ready = False

    async def wait_ready(self) -> None:
        if self._ready:
            return
        code = self.join_code.encode("utf-8")
        try:
            if self._initiator:
                await write_frame(self._stream, FRAME_HELLO, code)
            else:
                frame = await read_frame(self._stream)
                if frame is None or frame[0] != FRAME_HELLO:
                    raise TransportError("peer did not send a join code")
                if not constant_time_compare(frame[1], code):
                    raise TransportError("join code mismatch")
        except TransportError:
            await self.aclose()
            raise
        except (ProtocolError, OSError, trio.TooSlowError, trio.BrokenResourceError) as exc:
            await self.aclose()
            raise TransportError(f"pairing failed: {exc}") from exc
        self._ready = True

    async def send(self, item: ChannelItem) -> None:
        if isinstance(item, str):
            kind, payload = FRAME_TEXT, item.encode("utf-8")
        elif isinstance(item, (bytes, bytearray)):
            kind, payload = FRAME_BINARY, bytes(item)
        else:
            raise TypeError("channel items must be str or bytes")
        try:
            async with self._send_lock:
                await write_frame(self._stream, kind, payload)
        except ProtocolError as exc:
            raise TransportError(f"frame rejected: {exc}") from exc
        except (OSError, trio.TooSlowError, trio.BrokenResourceError, trio.ClosedResourceError) as exc:
            raise TransportError(f"stream write failed: {exc}") from exc

    async def receive(self) -> ChannelItem:
        try:
            frame = await read_frame(self._stream)
        except ProtocolError as exc:
            raise TransportError(f"bad frame: {exc}") from exc
        except (OSError, trio.TooSlowError, trio.BrokenResourceError, trio.ClosedResourceError) as exc:
            raise TransportError(f"stream read failed: {exc}") from exc
        if frame is None:
            raise trio.EndOfChannel
        kind, payload = frame
        if kind == FRAME_TEXT:
            try:
                return payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise TransportError("text frame is not UTF-8") from exc
        if kind == FRAME_BINARY:
            return payload
        raise TransportError("unexpected hello frame after pairing")

    async def aclose(self) -> None:
        try:
            await self._stream.close()
        except Exception:
            logger.debug("error closing paired stream", exc_info=True)


async def open_pairing_channel(host: Any, peer_id: Any, join_code: str) -> StreamChannel:
    """Open a stream to ``peer_id`` and pair it under ``join_code``."""
    stream = await host.new_stream(peer_id, [PAIRING_PROTOCOL_ID])
    channel = StreamChannel(stream, join_code, initiator=True)
    await channel.wait_ready()
    return channel


def register_pairing_protocol(
    host: Any,
    join_code: str,
    on_channel: Callable[[StreamChannel], Awaitable[None]],
) -> None:
    """
    Accept pairing streams on ``host`` for ``join_code``.

    ``on_channel`` owns the channel for its whole lifetime; the stream is
    closed when it returns.
    """

    async def _handler(stream: Any) -> None:
        channel = StreamChannel(stream, join_code, initiator=False)
        try:
            await channel.wait_ready()
        except TransportError as exc:
            logger.warning("rejected pairing stream: %s", exc)
            return
        try:
            await on_channel(channel)
        finally:
            await channel.aclose()

    host.set_stream_handler(PAIRING_PROTOCOL_ID, _handler)
