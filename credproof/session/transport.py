"""
Session transport: demultiplexes one paired channel into a control-message
queue and a protocol-message queue.

Typical use::

    transport = SessionTransport(channel)
    await transport.wait_ready()
    async with trio.open_nursery() as nursery:
        nursery.start_soon(transport.pump)
        ...
        await transport.aclose()

Both queues are FIFO and unbounded, so messages that arrive before a consumer
attaches are kept.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from typing import AsyncIterator, Iterator, Optional

import trio

from .channel import PairedChannel
from .errors import ProtocolError, QueueClaimedError, TransportError
from .messages import ControlMessage, decode_envelope, encode_envelope

logger = logging.getLogger(__name__)


class ProtocolMessages:
    """Exclusive handle on the protocol-message queue."""

    def __init__(self, transport: "SessionTransport") -> None:
        self._transport = transport

    async def receive(self) -> bytes:
        """
        Next protocol message in arrival order.

        Raises:
            TransportError: Once the channel is lost and the queue is drained
        """
        return await self._transport._receive_from(self._transport._protocol_receive)


class SessionTransport:
    def __init__(self, channel: PairedChannel) -> None:
        self._channel = channel
        self._control_send, self._control_receive = trio.open_memory_channel(math.inf)
        self._protocol_send, self._protocol_receive = trio.open_memory_channel(math.inf)
        self._claimed = False
        self._closed = False
        self._failure: Optional[TransportError] = None

    @property
    def join_code(self) -> str:
        return self._channel.join_code

    @property
    def failure(self) -> Optional[TransportError]:
        """Why the channel was lost, once it has been."""
        return self._failure

    async def wait_ready(self) -> None:
        await self._channel.wait_ready()

    async def pump(self) -> None:
        """
        Route inbound items until the channel ends.

        Never raises; a channel failure is recorded and closes both queues.
        """
        try:
            while True:
                try:
                    item = await self._channel.receive()
                except trio.EndOfChannel:
                    logger.debug("paired channel %s closed by peer", self.join_code)
                    self._fail(TransportError("paired channel closed"))
                    return
                except TransportError as exc:
                    if not self._closed:
                        logger.warning("paired channel %s failed: %s", self.join_code, exc)
                    self._fail(exc)
                    return
                self._route(item)
        finally:
            self._control_send.close()
            self._protocol_send.close()

    def _route(self, item: object) -> None:
        if self._closed:
            return
        if isinstance(item, bytes):
            self._protocol_send.send_nowait(item)
            return
        if isinstance(item, str):
            try:
                message = decode_envelope(item)
            except ProtocolError as exc:
                logger.warning("dropping unrecognised control text: %s", exc)
                return
            except Exception as exc:
                logger.warning("dropping undecodable control text: %s", type(exc).__name__)
                return
            self._control_send.send_nowait(message)
            return
        logger.warning("dropping inbound item of type %s", type(item).__name__)

    def _fail(self, exc: TransportError) -> None:
        if self._failure is None:
            self._failure = exc

    async def _receive_from(self, queue: trio.MemoryReceiveChannel):
        try:
            return await queue.receive()
        except trio.EndOfChannel:
            raise TransportError(
                f"paired channel lost: {self._failure or 'closed'}"
            ) from self._failure
        except trio.ClosedResourceError as exc:
            raise TransportError("transport closed") from exc

    async def receive_control(self) -> ControlMessage:
        """
        Next control message in arrival order.

        Raises:
            TransportError: Once the channel is lost and the queue is drained
        """
        return await self._receive_from(self._control_receive)

    async def control_messages(self) -> AsyncIterator[ControlMessage]:
        """Iterate control messages until the channel is lost."""
        while True:
            try:
                message = await self.receive_control()
            except TransportError:
                return
            yield message

    @contextmanager
    def claim_protocol_messages(self) -> Iterator[ProtocolMessages]:
        """
        Claim the protocol-message queue for the duration of the block.

        Raises:
            QueueClaimedError: If another consumer holds the queue
        """
        if self._claimed:
            raise QueueClaimedError("protocol messages already claimed")
        self._claimed = True
        try:
            yield ProtocolMessages(self)
        finally:
            self._claimed = False

    async def send(self, message: ControlMessage) -> None:
        await self._channel.send(encode_envelope(message))

    async def send_protocol(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("protocol messages must be bytes")
        await self._channel.send(bytes(data))

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._channel.aclose()
        self._control_send.close()
        self._protocol_send.close()
