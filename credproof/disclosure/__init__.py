"""Credential commitments, inclusion proofs and selective disclosure."""

from .commitment import (
    InclusionProof,
    compute_root,
    generate_entry_proof,
    name_hash,
    value_hash,
    verify_inclusion,
)
from .credential import CredentialBundle, CredentialRecord, IdentityData, issue_credential
from .exceptions import (
    CredentialProofError,
    IssuerMismatchError,
    LeafMismatchError,
    ParseError,
    ProofStructureError,
    ProofVerificationError,
    RootMismatchError,
    SignatureInvalid,
    ValueMismatchError,
)
from .presentation import (
    Presentation,
    RevealedAttribute,
    VerificationResult,
    build_presentation,
    check_presentation,
    verify_presentation,
)
from .requirements import Requirement, evaluate_requirements
from .signing import IssuerKey, public_keys_equal, verify_root_signature
from .trust import TrustList
from .values import AttributeValue, ValueKind

__all__ = [
    "AttributeValue",
    "ValueKind",
    "InclusionProof",
    "compute_root",
    "generate_entry_proof",
    "name_hash",
    "value_hash",
    "verify_inclusion",
    "CredentialRecord",
    "CredentialBundle",
    "IdentityData",
    "issue_credential",
    "IssuerKey",
    "public_keys_equal",
    "verify_root_signature",
    "Presentation",
    "RevealedAttribute",
    "VerificationResult",
    "build_presentation",
    "check_presentation",
    "verify_presentation",
    "Requirement",
    "evaluate_requirements",
    "TrustList",
    "CredentialProofError",
    "ParseError",
    "ProofVerificationError",
    "ProofStructureError",
    "RootMismatchError",
    "LeafMismatchError",
    "ValueMismatchError",
    "SignatureInvalid",
    "IssuerMismatchError",
]
