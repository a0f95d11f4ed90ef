"""
Security utilities shared by the disclosure and session layers.
"""

import base64
import hashlib
import hmac
import os
import secrets
from typing import Optional

from .config import JOIN_CODE_ENTROPY_BYTES


# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents randomness reuse if the process forks.

    Example:
        >>> rng = RandomnessSource()
        >>> nonce = rng.get_random_bytes(16)
    """

    def __init__(self):
        """Initialize randomness source with fork detection."""
        self._pid = os.getpid()

    def _check_fork(self) -> None:
        if os.getpid() != self._pid:
            self.__init__()

    def get_random_bytes(self, n: int) -> bytes:
        """
        Get n cryptographically secure random bytes.

        Args:
            n: Number of bytes to generate

        Returns:
            n random bytes
        """
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")
        self._check_fork()
        return secrets.token_bytes(n)


_DEFAULT_RNG = RandomnessSource()


# ============================================================================
# HASHING
# ============================================================================


def hash_with_domain(domain_sep: bytes, data: bytes) -> bytes:
    """
    SHA-256 of ``domain_sep || data``.

    Raises:
        TypeError: If either argument is not bytes
        ValueError: If the domain separator is empty
    """
    if not isinstance(domain_sep, bytes):
        raise TypeError(f"domain_sep must be bytes, got {type(domain_sep)}")
    if not isinstance(data, bytes):
        raise TypeError(f"data must be bytes, got {type(data)}")
    if not domain_sep:
        raise ValueError("Domain separator cannot be empty")
    return hashlib.sha256(domain_sep + data).digest()


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Uses hmac.compare_digest, which takes time independent of where the
    inputs differ.
    """
    return hmac.compare_digest(a, b)


# ============================================================================
# JOIN CODES
# ============================================================================


def generate_join_code(rng: Optional[RandomnessSource] = None) -> str:
    """
    Generate a pairing join code with 128 bits of entropy.

    The code is lowercase base32 without padding (26 characters), which
    survives QR codes, URLs and being read aloud.
    """
    source = rng if rng is not None else _DEFAULT_RNG
    raw = source.get_random_bytes(JOIN_CODE_ENTROPY_BYTES)
    return base64.b32encode(raw).decode("ascii").rstrip("=").lower()
