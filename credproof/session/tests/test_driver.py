"""Secure computation sessions over a loopback pairing."""

import pytest
import trio

from credproof.session.constants import DEFAULT_EXPECTED_TOTAL_BYTES
from credproof.session.driver import (
    OutputRecord,
    RequirementInput,
    Role,
    SecureComputationSession,
    SessionState,
    SubjectInput,
    run_secure_computation,
)
from credproof.session.errors import (
    OutputShapeError,
    ProtocolError,
    QueueClaimedError,
    SessionStateError,
    TransportError,
)
from credproof.session.mock_engine import MockPredicateEngine

REQUIREMENT = RequirementInput(min_age=18, required_residency="Berlin", required_name_hash=42)
ADULT = SubjectInput(age=25, residency="Berlin", name_hash=42)
MINOR = SubjectInput(age=17, residency="Paris", name_hash=41)


async def _run_both(verifier, holder, subject, **kwargs):
    results = {}

    async def run(role, inputs, transport):
        results[role] = await run_secure_computation(
            role, inputs, transport, engine=MockPredicateEngine(), **kwargs
        )

    async with trio.open_nursery() as nursery:
        nursery.start_soon(run, Role.REQUIREMENT, REQUIREMENT, verifier)
        nursery.start_soon(run, Role.SUBJECT, subject, holder)
    return results


class ScriptedSession:
    def __init__(self, output=None, error=None) -> None:
        self._output = output
        self._error = error
        self.received = []

    def handle_message(self, from_party, data) -> None:
        self.received.append((from_party, data))
        if self._error is not None:
            raise self._error

    async def output(self):
        if self._error is not None:
            await trio.sleep_forever()
        return self._output


class ScriptedEngine:
    expected_total_bytes = 10

    def __init__(self, session, greeting=None, greet_to="alice") -> None:
        self.session = session
        self._greeting = greeting
        self._greet_to = greet_to

    def join(self, party, inputs, send):
        self.joined = (party, inputs)
        if self._greeting is not None:
            send(self._greet_to, self._greeting)
        return self.session


def test_role_parties() -> None:
    assert Role.REQUIREMENT.party == "alice"
    assert Role.REQUIREMENT.counterpart == "bob"
    assert Role.SUBJECT.party == "bob"
    assert Role.SUBJECT.counterpart == "alice"


def test_engine_input_names() -> None:
    assert REQUIREMENT.to_engine_inputs() == {
        "minAge": 18,
        "requiredResidency": "Berlin",
        "requiredNameHash": 42,
    }
    assert ADULT.to_engine_inputs() == {"age": 25, "residency": "Berlin", "nameHash": 42}


@pytest.mark.trio
async def test_both_sides_agree(transports) -> None:
    verifier, holder = transports
    results = await _run_both(verifier, holder, ADULT)
    expected = OutputRecord(age_valid=True, residency_valid=True, name_valid=True)
    assert results[Role.REQUIREMENT] == expected
    assert results[Role.SUBJECT] == expected


@pytest.mark.trio
async def test_failed_predicates(transports) -> None:
    verifier, holder = transports
    results = await _run_both(verifier, holder, MINOR)
    assert results[Role.REQUIREMENT] == OutputRecord(False, False, False)


@pytest.mark.trio
async def test_progress_is_monotonic_and_capped(transports) -> None:
    verifier, holder = transports
    progress = []
    await _run_both(verifier, holder, ADULT, on_progress=progress.append)
    assert progress
    assert progress == sorted(progress)
    assert all(0 < value <= 1.0 for value in progress)


@pytest.mark.trio
async def test_states_and_single_use(transports) -> None:
    verifier, holder = transports
    session = SecureComputationSession(
        Role.REQUIREMENT, REQUIREMENT, verifier, engine=MockPredicateEngine()
    )
    assert session.state is SessionState.CREATED
    async with trio.open_nursery() as nursery:
        nursery.start_soon(
            run_secure_computation, Role.SUBJECT, ADULT, holder
        )
        await session.run()
    assert session.state is SessionState.COMPLETED
    assert session.bytes_exchanged > 0
    with pytest.raises(SessionStateError):
        await session.run()


def test_inputs_must_match_role() -> None:
    with pytest.raises(TypeError):
        SecureComputationSession(Role.SUBJECT, REQUIREMENT, transport=None, engine=MockPredicateEngine())


@pytest.mark.trio
async def test_engine_addressing_unknown_party(transports) -> None:
    verifier, _ = transports
    engine = ScriptedEngine(ScriptedSession(), greeting=b"hi", greet_to="carol")
    session = SecureComputationSession(Role.REQUIREMENT, REQUIREMENT, verifier, engine=engine)
    with pytest.raises(ProtocolError, match="unknown party"):
        await session.run()
    assert session.state is SessionState.FAILED


@pytest.mark.trio
async def test_engine_errors_propagate_unchanged(transports) -> None:
    verifier, holder = transports
    boom = RuntimeError("engine exploded")
    engine = ScriptedEngine(ScriptedSession(error=boom))
    await verifier.send_protocol(b"\x00")
    with pytest.raises(RuntimeError) as excinfo:
        await run_secure_computation(Role.SUBJECT, ADULT, holder, engine=engine)
    assert excinfo.value is boom


@pytest.mark.trio
async def test_output_is_normalised_and_queued_sends_flushed(transports) -> None:
    verifier, holder = transports
    session = ScriptedSession(output={"ageValid": 1, "residencyValid": 0, "nameValid": True})
    engine = ScriptedEngine(session, greeting=b"hello", greet_to="bob")
    record = await run_secure_computation(Role.REQUIREMENT, REQUIREMENT, verifier, engine=engine)
    assert record == OutputRecord(age_valid=True, residency_valid=False, name_valid=True)
    assert engine.joined == ("alice", REQUIREMENT.to_engine_inputs())
    # the greeting queued during join was flushed before run returned
    with holder.claim_protocol_messages() as inbound:
        assert await inbound.receive() == b"hello"


@pytest.mark.parametrize(
    "output",
    [
        None,
        [1, 1, 1],
        {"ageValid": 1, "residencyValid": 1},
        {"ageValid": 1, "residencyValid": 1, "nameValid": 1, "extra": 0},
        {"ageValid": 2, "residencyValid": 1, "nameValid": 1},
        {"ageValid": "1", "residencyValid": 1, "nameValid": 1},
    ],
)
@pytest.mark.trio
async def test_bad_output_shape(transports, output) -> None:
    verifier, _ = transports
    engine = ScriptedEngine(ScriptedSession(output=output))
    with pytest.raises(OutputShapeError):
        await run_secure_computation(Role.REQUIREMENT, REQUIREMENT, verifier, engine=engine)


@pytest.mark.trio
async def test_claimed_queue_blocks_session(transports) -> None:
    verifier, _ = transports
    with verifier.claim_protocol_messages():
        with pytest.raises(QueueClaimedError):
            await run_secure_computation(
                Role.REQUIREMENT, REQUIREMENT, verifier, engine=MockPredicateEngine()
            )


@pytest.mark.trio
async def test_peer_disconnect_is_transport_error(transports) -> None:
    verifier, holder = transports
    await verifier.aclose()
    with pytest.raises(TransportError):
        await run_secure_computation(Role.SUBJECT, ADULT, holder, engine=MockPredicateEngine())


@pytest.mark.trio
async def test_progress_uses_default_total_when_engine_has_none(transports) -> None:
    verifier, _ = transports
    session = ScriptedSession(output={"ageValid": 1, "residencyValid": 0, "nameValid": 0})
    engine = ScriptedEngine(session, greeting=b"x" * 1500, greet_to="bob")
    engine.expected_total_bytes = 0
    progress = []
    await run_secure_computation(
        Role.REQUIREMENT, REQUIREMENT, verifier, engine=engine, on_progress=progress.append
    )
    assert progress == [1500 / DEFAULT_EXPECTED_TOTAL_BYTES]
