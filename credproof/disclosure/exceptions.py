"""
Exceptions for credential commitments and presentations.

Verification code raises these internally; the public verifier collapses
them into a boolean result with the exception as the logged reason.
"""


class CredentialProofError(Exception):
    """Base exception for credential proof errors."""

    pass


class ParseError(CredentialProofError):
    """Malformed credential bundle, record, or presentation payload."""

    pass


class ProofVerificationError(CredentialProofError):
    """Error during presentation verification."""

    pass


class ProofStructureError(ProofVerificationError):
    """Inclusion proof does not recompute its claimed root."""

    pass


class RootMismatchError(ProofVerificationError):
    """Revealed attributes imply different commitment roots."""

    pass


class LeafMismatchError(ProofVerificationError):
    """Proof leaf is not the hash of the revealed attribute name."""

    pass


class ValueMismatchError(ProofVerificationError):
    """Proof value sibling is not the hash of the revealed value."""

    pass


class SignatureInvalid(ProofVerificationError):
    """Signature does not verify over the root under the canonical encoding."""

    pass


class IssuerMismatchError(ProofVerificationError):
    """Signer key differs from the expected issuer key."""

    pass


class CryptographicError(CredentialProofError):
    """Cryptographic operation error."""

    pass
