"""
Selective-disclosure presentations.

Holder side:
    presentation = build_presentation(record, ["age", "residency"])

Verifier side:
    result = check_presentation(presentation, expected_issuer_key=issuer_pk)
    if result.ok:
        age = result.revealed["age"]

Verification never raises. Every failure is reported as ``ok=False`` with
the failing check's exception as the reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .. import codec
from ..feature_flags import ISSUER_POLICY_WARN, get_issuer_policy
from .commitment import (
    InclusionProof,
    generate_entry_proof,
    name_hash,
    validate_name,
    value_hash,
    verify_inclusion,
)
from .credential import CredentialRecord
from .exceptions import (
    CredentialProofError,
    IssuerMismatchError,
    LeafMismatchError,
    ParseError,
    ProofStructureError,
    RootMismatchError,
    ValueMismatchError,
)
from .security import constant_time_compare
from .signing import public_keys_equal, verify_root_signature
from .values import AttributeValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealedAttribute:
    value: AttributeValue
    proof: InclusionProof

    def to_json(self) -> Dict[str, Any]:
        return {"value": self.value.to_json(), "proof": self.proof.to_json()}


@dataclass(frozen=True)
class Presentation:
    """
    A holder's selective disclosure of one credential record.

    Attributes:
        revealed: attribute name -> (value, inclusion proof)
        signature: the record's issuer signature, unchanged
        signer_public_key: the record's issuer key, unchanged
    """

    revealed: Mapping[str, RevealedAttribute]
    signature: str
    signer_public_key: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "revealed": {name: item.to_json() for name, item in self.revealed.items()},
            "signature": self.signature,
            "signerPublicKey": self.signer_public_key,
        }

    def serialize(self) -> str:
        return codec.dumps(self.to_json())

    @classmethod
    def from_json(cls, data: Any) -> "Presentation":
        """
        Raises:
            ParseError: If the presentation shape is invalid
        """
        if not isinstance(data, dict):
            raise ParseError("presentation must be an object")
        raw_revealed = data.get("revealed")
        if not isinstance(raw_revealed, dict):
            raise ParseError("presentation revealed must be an object")
        signature = data.get("signature")
        public_key = data.get("signerPublicKey")
        if not isinstance(signature, str) or not isinstance(public_key, str):
            raise ParseError("presentation requires signature and signerPublicKey")

        revealed: Dict[str, RevealedAttribute] = {}
        for name, item in raw_revealed.items():
            if not isinstance(item, dict):
                raise ParseError(f"revealed attribute {name!r} must be an object")
            try:
                validate_name(name)
            except ValueError as exc:
                raise ParseError(str(exc)) from exc
            revealed[name] = RevealedAttribute(
                value=AttributeValue.from_json(item.get("value")),
                proof=InclusionProof.from_json(item.get("proof")),
            )
        return cls(revealed=revealed, signature=signature, signer_public_key=public_key)

    @classmethod
    def deserialize(cls, text: Union[str, bytes, bytearray]) -> "Presentation":
        try:
            data = codec.loads(text)
        except ValueError as exc:
            raise ParseError(f"presentation is not valid JSON: {exc}") from exc
        return cls.from_json(data)


def build_presentation(record: CredentialRecord, names: Iterable[str]) -> Presentation:
    """
    Reveal the named entries of ``record``.

    Names the record does not hold are skipped: disclosure is voluntary, so
    a request for a missing attribute is not an error.
    """
    revealed: Dict[str, RevealedAttribute] = {}
    for name in names:
        value = record.get(name)
        if value is None or name in revealed:
            continue
        revealed[name] = RevealedAttribute(
            value=value, proof=generate_entry_proof(record.entries, name)
        )
    return Presentation(
        revealed=revealed,
        signature=record.signature,
        signer_public_key=record.signer_public_key,
    )


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    reason: Optional[str] = None
    root: Optional[bytes] = None
    revealed: Mapping[str, AttributeValue] = field(default_factory=dict)
    issuer_warning: Optional[str] = None
    # key the root signature was verified against
    signer_public_key: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


def _coerce(presentation: Any) -> Presentation:
    if isinstance(presentation, Presentation):
        return presentation
    if isinstance(presentation, (str, bytes, bytearray)):
        return Presentation.deserialize(presentation)
    return Presentation.from_json(presentation)


def _verify(
    presentation: Presentation,
    expected_issuer_key: Optional[str],
    issuer_policy: str,
) -> VerificationResult:
    if not presentation.revealed:
        raise ParseError("presentation reveals no attributes")

    derived_root: Optional[bytes] = None
    for name, item in presentation.revealed.items():
        proof = item.proof
        if not verify_inclusion(proof):
            raise ProofStructureError(f"inclusion proof invalid for {name!r}")

        if derived_root is None:
            derived_root = proof.root
        elif not constant_time_compare(derived_root, proof.root):
            raise RootMismatchError(f"{name!r} proves a different root")

        if proof.index % 2 != 0 or not constant_time_compare(proof.leaf, name_hash(name)):
            raise LeafMismatchError(f"proof leaf does not match name {name!r}")
        if not constant_time_compare(proof.siblings[0], value_hash(item.value)):
            raise ValueMismatchError(f"proof does not bind the value of {name!r}")

    verify_root_signature(derived_root, presentation.signature, presentation.signer_public_key)

    warning = None
    if expected_issuer_key is not None and not public_keys_equal(
        expected_issuer_key, presentation.signer_public_key
    ):
        if issuer_policy != ISSUER_POLICY_WARN:
            raise IssuerMismatchError("signer key differs from expected issuer key")
        warning = "signer key differs from expected issuer key"
        logger.warning("presentation %s", warning)

    return VerificationResult(
        ok=True,
        root=derived_root,
        revealed={name: item.value for name, item in presentation.revealed.items()},
        issuer_warning=warning,
        signer_public_key=presentation.signer_public_key,
    )


def check_presentation(
    presentation: Any,
    expected_issuer_key: Optional[str] = None,
    *,
    issuer_policy: Optional[str] = None,
) -> VerificationResult:
    """
    Verify a presentation and return the revealed values.

    Args:
        presentation: Presentation, its decoded JSON mapping, or JSON text
        expected_issuer_key: Optional canonical issuer key to require
        issuer_policy: "enforce" (mismatch fails) or "warn" (mismatch is
            reported in ``issuer_warning``); defaults to the feature flag

    Returns:
        VerificationResult; never raises
    """
    try:
        policy = get_issuer_policy(prefer=issuer_policy)
        parsed = _coerce(presentation)
        return _verify(parsed, expected_issuer_key, policy)
    except CredentialProofError as exc:
        reason = f"{type(exc).__name__}: {exc}"
    except Exception as exc:
        reason = f"{ParseError.__name__}: unexpected {type(exc).__name__}: {exc}"
    logger.debug("presentation rejected: %s", reason)
    return VerificationResult(ok=False, reason=reason)


def verify_presentation(
    presentation: Any,
    expected_issuer_key: Optional[str] = None,
    *,
    issuer_policy: Optional[str] = None,
) -> bool:
    """Boolean form of check_presentation."""
    return check_presentation(
        presentation, expected_issuer_key, issuer_policy=issuer_policy
    ).ok
