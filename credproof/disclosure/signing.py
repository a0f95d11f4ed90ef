"""
Issuer signatures over commitment roots.

Canonical encoding (the only one accepted):
    - public key: raw 32-byte Ed25519 verify key, standard padded base64
    - private key: raw 32-byte Ed25519 seed, standard padded base64
    - signature: raw 64-byte detached Ed25519 signature, standard padded base64
    - message: DOMAIN_SEPARATORS["root_signature"] || root (32 bytes)

Decoding is strict: non-canonical base64 or wrong lengths are rejected
rather than reinterpreted.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from .config import (
    DOMAIN_SEPARATORS,
    HASH_OUTPUT_BYTES,
    PRIVATE_KEY_SEED_BYTES,
    PUBLIC_KEY_BYTES,
    SIGNATURE_BYTES,
)
from .exceptions import CryptographicError, ParseError, SignatureInvalid
from .security import RandomnessSource, constant_time_compare


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: object, expected_len: int, field: str) -> bytes:
    if not isinstance(text, str):
        raise ParseError(f"{field} must be a base64 string")
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ParseError(f"{field} must be valid base64") from exc
    if len(raw) != expected_len:
        raise ParseError(f"{field} must decode to {expected_len} bytes")
    # Reject alternative spellings of the same bytes (e.g. non-zero pad bits).
    if _b64encode(raw) != text:
        raise ParseError(f"{field} is not canonically encoded")
    return raw


def decode_public_key(text: object) -> bytes:
    return _b64decode(text, PUBLIC_KEY_BYTES, "public key")


def decode_signature(text: object) -> bytes:
    return _b64decode(text, SIGNATURE_BYTES, "signature")


def encode_public_key(raw: bytes) -> str:
    if not isinstance(raw, bytes) or len(raw) != PUBLIC_KEY_BYTES:
        raise ValueError(f"public key must be {PUBLIC_KEY_BYTES} bytes")
    return _b64encode(raw)


def root_signing_message(root: bytes) -> bytes:
    """The exact byte string signed for a commitment root."""
    if not isinstance(root, bytes) or len(root) != HASH_OUTPUT_BYTES:
        raise ValueError(f"root must be {HASH_OUTPUT_BYTES} bytes")
    return DOMAIN_SEPARATORS["root_signature"] + root


def public_keys_equal(a: object, b: object) -> bool:
    """Compare two encoded public keys; malformed keys are never equal."""
    try:
        return constant_time_compare(decode_public_key(a), decode_public_key(b))
    except ParseError:
        return False


class IssuerKey:
    """
    Issuer signing key.

    Example:
        >>> key = IssuerKey.generate()
        >>> signature = key.sign_root(root)
        >>> verify_root_signature(root, signature, key.public_key)
    """

    def __init__(self, signing_key: SigningKey) -> None:
        if not isinstance(signing_key, SigningKey):
            raise TypeError("signing_key must be nacl.signing.SigningKey")
        self._signing_key = signing_key

    @classmethod
    def generate(cls, rng: Optional[RandomnessSource] = None) -> "IssuerKey":
        source = rng if rng is not None else RandomnessSource()
        return cls.from_seed(source.get_random_bytes(PRIVATE_KEY_SEED_BYTES))

    @classmethod
    def from_seed(cls, seed: bytes) -> "IssuerKey":
        if not isinstance(seed, bytes) or len(seed) != PRIVATE_KEY_SEED_BYTES:
            raise ValueError(f"seed must be {PRIVATE_KEY_SEED_BYTES} bytes")
        return cls(SigningKey(seed))

    @classmethod
    def from_encoded(cls, text: str) -> "IssuerKey":
        """
        Raises:
            ParseError: If the private key is not canonical base64 of 32 bytes
        """
        return cls.from_seed(_b64decode(text, PRIVATE_KEY_SEED_BYTES, "private key"))

    @property
    def encoded(self) -> str:
        return _b64encode(bytes(self._signing_key))

    @property
    def public_key(self) -> str:
        return _b64encode(bytes(self._signing_key.verify_key))

    def sign_root(self, root: bytes) -> str:
        try:
            signed = self._signing_key.sign(root_signing_message(root))
        except CryptoError as exc:
            raise CryptographicError(f"signing failed: {exc}") from exc
        return _b64encode(signed.signature)

    def __repr__(self) -> str:
        return f"IssuerKey(public_key={self.public_key!r})"


def verify_root_signature(root: bytes, signature: str, public_key: str) -> None:
    """
    Verify an issuer signature over ``root``.

    Raises:
        SignatureInvalid: If the key or signature is malformed, or the
            signature does not verify
    """
    try:
        key_bytes = decode_public_key(public_key)
        sig_bytes = decode_signature(signature)
        message = root_signing_message(root)
    except (ParseError, ValueError) as exc:
        raise SignatureInvalid(str(exc)) from exc

    try:
        VerifyKey(key_bytes).verify(message, sig_bytes)
    except BadSignatureError as exc:
        raise SignatureInvalid("signature does not verify over root") from exc
    except (CryptoError, ValueError, TypeError) as exc:
        raise SignatureInvalid(f"public key rejected: {exc}") from exc
