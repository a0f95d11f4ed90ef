"""In-process holder/verifier exchange over a loopback pairing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import trio

from .disclosure import IdentityData, IssuerKey, TrustList, issue_credential
from .disclosure.credential import CredentialRecord
from .disclosure.presentation import VerificationResult
from .disclosure.security import generate_join_code
from .exchange import (
    answer_disclosure_request,
    check_disclosure,
    request_disclosure,
    request_private_check,
    subject_input_from_record,
)
from .session.channel import open_loopback_pair
from .session.driver import OutputRecord, Role, run_secure_computation
from .session.engine import ProtocolEngine
from .session.errors import ProtocolError
from .session.messages import MpcRequest, PodPresentation, PodRequest
from .session.transport import SessionTransport

logger = logging.getLogger(__name__)

DEMO_IDENTITY = IdentityData(age=25, residency="Berlin", name="Alice")


@dataclass(frozen=True)
class DemoReport:
    join_code: str
    disclosure: VerificationResult
    output: OutputRecord


async def serve_holder(
    transport: SessionTransport,
    record: CredentialRecord,
    issuer_pk: str,
    done: trio.Event,
    engine: Optional[ProtocolEngine] = None,
) -> None:
    """Answer verifier requests until a private check completes."""
    while True:
        message = await transport.receive_control()
        if isinstance(message, PodRequest):
            await answer_disclosure_request(transport, record, issuer_pk, message)
        elif isinstance(message, MpcRequest):
            inputs = subject_input_from_record(record)
            output = await run_secure_computation(Role.SUBJECT, inputs, transport, engine=engine)
            logger.debug("holder finished private check: %s", output)
            done.set()
            return
        else:
            logger.warning("holder ignoring %s", message.type)


async def run_demo(
    min_age: int = 18,
    required_name: Optional[str] = None,
    *,
    engine: Optional[ProtocolEngine] = None,
) -> DemoReport:
    issuer = IssuerKey.generate()
    record = issue_credential(issuer, DEMO_IDENTITY.to_attributes())
    trust = TrustList([issuer.public_key])

    join_code = generate_join_code()
    verifier_channel, holder_channel = open_loopback_pair(join_code)
    verifier = SessionTransport(verifier_channel)
    holder = SessionTransport(holder_channel)
    holder_done = trio.Event()

    async with trio.open_nursery() as nursery:
        for transport in (verifier, holder):
            await transport.wait_ready()
            nursery.start_soon(transport.pump)
        nursery.start_soon(serve_holder, holder, record, issuer.public_key, holder_done, engine)

        await request_disclosure(verifier, ["age", "residency"])
        reply = await verifier.receive_control()
        if not isinstance(reply, PodPresentation):
            raise ProtocolError(f"expected {PodPresentation.__name__}, got {reply.type}")
        disclosure = check_disclosure(reply, trust)

        requirement = await request_private_check(verifier, min_age, required_name)
        output = await run_secure_computation(Role.REQUIREMENT, requirement, verifier, engine=engine)

        await holder_done.wait()
        await verifier.aclose()
        await holder.aclose()

    return DemoReport(join_code=join_code, disclosure=disclosure, output=output)
