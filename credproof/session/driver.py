"""
Drives one two-party predicate evaluation over a SessionTransport.

The requirement party (the verifier) contributes the minimum age, required
residency and required name digest; the subject party (the holder)
contributes the matching attributes. Both learn only the three booleans in
OutputRecord, to the extent the engine keeps its promises.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

import trio

from .constants import DEFAULT_EXPECTED_TOTAL_BYTES, PARTY_REQUIREMENT, PARTY_SUBJECT
from .engine import EngineSession, ProtocolEngine, SendCallback, get_protocol_engine
from .errors import (
    OutputShapeError,
    ProtocolError,
    SessionStateError,
    TransportError,
)
from .transport import ProtocolMessages, SessionTransport

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

_MISSING = object()


class Role(enum.Enum):
    REQUIREMENT = PARTY_REQUIREMENT
    SUBJECT = PARTY_SUBJECT

    @property
    def party(self) -> str:
        return self.value

    @property
    def counterpart(self) -> str:
        return PARTY_SUBJECT if self is Role.REQUIREMENT else PARTY_REQUIREMENT


class SessionState(enum.Enum):
    CREATED = "created"
    JOINED = "joined"
    EXCHANGING = "exchanging"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RequirementInput:
    min_age: int
    required_residency: str
    required_name_hash: int = 0

    def to_engine_inputs(self) -> Dict[str, Any]:
        return {
            "minAge": self.min_age,
            "requiredResidency": self.required_residency,
            "requiredNameHash": self.required_name_hash,
        }


@dataclass(frozen=True)
class SubjectInput:
    age: int
    residency: str
    name_hash: int

    def to_engine_inputs(self) -> Dict[str, Any]:
        return {"age": self.age, "residency": self.residency, "nameHash": self.name_hash}


SessionInput = Union[RequirementInput, SubjectInput]

_OUTPUT_FIELDS = (
    ("ageValid", "age_valid"),
    ("residencyValid", "residency_valid"),
    ("nameValid", "name_valid"),
)


@dataclass(frozen=True)
class OutputRecord:
    age_valid: bool
    residency_valid: bool
    name_valid: bool

    @classmethod
    def from_engine_output(cls, output: Any) -> "OutputRecord":
        """
        Raises:
            OutputShapeError: Unless ``output`` maps exactly the three result
                names to 0/1 or booleans
        """
        if not isinstance(output, Mapping):
            raise OutputShapeError(f"engine output must be a mapping, got {type(output).__name__}")
        expected = {key for key, _ in _OUTPUT_FIELDS}
        if set(output) != expected:
            raise OutputShapeError(f"engine output keys must be {sorted(expected)}")

        values = {}
        for key, attr in _OUTPUT_FIELDS:
            raw = output[key]
            if isinstance(raw, bool):
                values[attr] = raw
            elif isinstance(raw, int) and raw in (0, 1):
                values[attr] = bool(raw)
            else:
                raise OutputShapeError(f"{key} must be 0, 1 or a boolean")
        return cls(**values)


class SecureComputationSession:
    """
    One run of the predicate evaluation for a single party.

    ``run`` may be called once. Engine exceptions propagate unchanged; there
    are no retries.
    """

    def __init__(
        self,
        role: Role,
        inputs: SessionInput,
        transport: SessionTransport,
        *,
        engine: Optional[ProtocolEngine] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        expected_input = RequirementInput if role is Role.REQUIREMENT else SubjectInput
        if not isinstance(inputs, expected_input):
            raise TypeError(f"{role.name} sessions take {expected_input.__name__}")
        self.role = role
        self.state = SessionState.CREATED
        self.bytes_exchanged = 0
        self._inputs = inputs
        self._transport = transport
        self._engine = engine if engine is not None else get_protocol_engine()
        self._on_progress = on_progress
        self._failure: Optional[BaseException] = None
        self._lost: Optional[TransportError] = None

    async def run(self) -> OutputRecord:
        if self.state is not SessionState.CREATED:
            raise SessionStateError(f"session already {self.state.value}")
        logger.debug("starting %s session on %s", self.role.party, self._transport.join_code)
        try:
            output = await self._run()
            record = OutputRecord.from_engine_output(output)
        except BaseException:
            self.state = SessionState.FAILED
            raise
        self.state = SessionState.COMPLETED
        logger.debug("%s session finished after %d bytes", self.role.party, self.bytes_exchanged)
        return record

    async def _run(self) -> Any:
        outbound_send, outbound_receive = trio.open_memory_channel(math.inf)
        output: Any = _MISSING

        with self._transport.claim_protocol_messages() as inbound:
            session = self._engine.join(
                self.role.party, self._inputs.to_engine_inputs(), self._sender(outbound_send)
            )
            self.state = SessionState.JOINED

            async with trio.open_nursery() as nursery:
                inbound_scope = trio.CancelScope()
                output_scope = trio.CancelScope()
                nursery.start_soon(
                    self._guarded, nursery.cancel_scope, self._flush_outbound, outbound_receive
                )
                nursery.start_soon(
                    self._guarded,
                    nursery.cancel_scope,
                    self._drain_inbound,
                    session,
                    inbound,
                    inbound_scope,
                    output_scope,
                )
                self.state = SessionState.EXCHANGING

                try:
                    with output_scope:
                        output = await session.output()
                except Exception as exc:
                    self._record_failure(exc)
                    nursery.cancel_scope.cancel()
                else:
                    # queued outbound bytes still drain before the nursery exits
                    inbound_scope.cancel()
                    outbound_send.close()

        if self._failure is not None:
            raise self._failure
        if output is _MISSING:
            raise self._lost or TransportError("paired channel lost before output")
        return output

    def _sender(self, outbound_send: trio.MemorySendChannel) -> SendCallback:
        counterpart = self.role.counterpart

        def send(to_party: str, data: bytes) -> None:
            if to_party != counterpart:
                raise ProtocolError(f"engine addressed unknown party {to_party!r}")
            payload = bytes(data)
            try:
                outbound_send.send_nowait(payload)
            except trio.ClosedResourceError as exc:
                raise ProtocolError("engine sent after producing output") from exc
            self._count(len(payload))

        return send

    def _count(self, size: int) -> None:
        self.bytes_exchanged += size
        expected = self._engine.expected_total_bytes
        if expected <= 0:
            expected = DEFAULT_EXPECTED_TOTAL_BYTES
        if self._on_progress is not None:
            self._on_progress(min(1.0, self.bytes_exchanged / expected))

    def _record_failure(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc

    async def _guarded(self, scope: trio.CancelScope, fn: Callable[..., Any], *args: Any) -> None:
        try:
            await fn(*args)
        except Exception as exc:
            self._record_failure(exc)
            scope.cancel()

    async def _flush_outbound(self, outbound_receive: trio.MemoryReceiveChannel) -> None:
        async with outbound_receive:
            async for data in outbound_receive:
                await self._transport.send_protocol(data)

    async def _drain_inbound(
        self,
        session: EngineSession,
        inbound: ProtocolMessages,
        inbound_scope: trio.CancelScope,
        output_scope: trio.CancelScope,
    ) -> None:
        counterpart = self.role.counterpart
        with inbound_scope:
            while True:
                try:
                    data = await inbound.receive()
                except TransportError as exc:
                    # every buffered message was handled; an output the engine
                    # already produced still wins
                    self._lost = exc
                    output_scope.cancel()
                    return
                self._count(len(data))
                session.handle_message(counterpart, data)


async def run_secure_computation(
    role: Role,
    inputs: SessionInput,
    transport: SessionTransport,
    *,
    engine: Optional[ProtocolEngine] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> OutputRecord:
    """Run one predicate evaluation; the caller keeps ``transport.pump`` running."""
    session = SecureComputationSession(
        role, inputs, transport, engine=engine, on_progress=on_progress
    )
    return await session.run()
