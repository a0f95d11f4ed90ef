"""
Holder and verifier steps of a paired exchange.

Verifier::

    await request_disclosure(transport, ["age", "residency"])
    message = await transport.receive_control()
    result = check_disclosure(message, trust_list)

    requirement = await request_private_check(transport, 18, required_name="Alice")
    output = await run_secure_computation(Role.REQUIREMENT, requirement, transport)

Holder::

    message = await transport.receive_control()
    if isinstance(message, PodRequest):
        await answer_disclosure_request(transport, record, issuer_pk, message)
    elif isinstance(message, MpcRequest):
        inputs = subject_input_from_record(record)
        await run_secure_computation(Role.SUBJECT, inputs, transport)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .disclosure.config import DEFAULT_DISCLOSURE_FIELDS, DOMAIN_SEPARATORS
from .disclosure.credential import CredentialRecord
from .disclosure.presentation import Presentation, VerificationResult, build_presentation, check_presentation
from .disclosure.security import hash_with_domain
from .disclosure.trust import TrustList
from .session.driver import RequirementInput, SubjectInput
from .session.messages import MpcRequest, PodPresentation, PodRequest
from .session.transport import SessionTransport

logger = logging.getLogger(__name__)

NAME_DIGEST_BYTES = 8


def name_digest(name: str) -> int:
    """64-bit digest of ``name``, the private name-match input."""
    if not isinstance(name, str):
        raise TypeError("name must be a string")
    digest = hash_with_domain(DOMAIN_SEPARATORS["mpc_name"], name.encode("utf-8"))
    return int.from_bytes(digest[:NAME_DIGEST_BYTES], "big")


async def request_disclosure(transport: SessionTransport, fields: Iterable[str]) -> None:
    await transport.send(PodRequest(fields=tuple(fields)))


async def answer_disclosure_request(
    transport: SessionTransport,
    record: CredentialRecord,
    issuer_pk: str,
    request: PodRequest,
) -> Presentation:
    """
    Reveal the requested fields the record holds and send the presentation.

    An empty request asks for the default identity fields.
    """
    fields = request.fields or DEFAULT_DISCLOSURE_FIELDS
    presentation = build_presentation(record, fields)
    logger.debug("revealing %s", sorted(presentation.revealed))
    await transport.send(PodPresentation(presentation=presentation.to_json(), issuer_pk=issuer_pk))
    return presentation


def check_disclosure(
    message: PodPresentation,
    trust_list: Optional[TrustList] = None,
    *,
    issuer_policy: Optional[str] = None,
) -> VerificationResult:
    """
    Verify a received presentation against the issuer key sent with it.

    With a trust list, the key that actually signed must be trusted; the
    claimed ``issuer_pk`` only feeds the issuer policy check. Never raises.
    """
    result = check_presentation(
        message.presentation, message.issuer_pk, issuer_policy=issuer_policy
    )
    if result.ok and trust_list is not None and result.signer_public_key not in trust_list:
        reason = "IssuerMismatchError: issuer key is not trusted"
        logger.debug("presentation rejected: %s", reason)
        return VerificationResult(ok=False, reason=reason)
    return result


async def request_private_check(
    transport: SessionTransport,
    min_age: int,
    required_name: Optional[str] = None,
    required_residency: str = "",
) -> RequirementInput:
    """Ask the holder to join a private check and return the verifier's inputs."""
    await transport.send(MpcRequest(min_age=min_age, check_name=bool(required_name)))
    return RequirementInput(
        min_age=min_age,
        required_residency=required_residency,
        required_name_hash=name_digest(required_name) if required_name else 0,
    )


def subject_input_from_record(record: CredentialRecord) -> SubjectInput:
    """
    Holder inputs for a private check; missing attributes become 0 or "".

    Raises:
        ValueError: If ``age`` is present but not an integer
    """
    age = record.get("age")
    if age is not None and not age.is_int:
        raise ValueError("credential age must be an integer")
    residency = record.get("residency")
    name = record.get("name")
    return SubjectInput(
        age=age.value if age is not None else 0,
        residency=str(residency.value) if residency is not None else "",
        name_hash=name_digest(str(name.value)) if name is not None else 0,
    )
