"""Trusted issuer keys."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .exceptions import ParseError
from .signing import decode_public_key, encode_public_key


class TrustList:
    """
    In-memory set of issuer keys a verifier trusts.

    Keys are stored in canonical form; malformed keys are rejected on add.
    Persisting the list is the caller's business.
    """

    def __init__(self, keys: Optional[Iterable[str]] = None) -> None:
        self._keys: set[bytes] = set()
        for key in keys or ():
            self.add(key)

    def add(self, key: str) -> None:
        """
        Raises:
            ParseError: If ``key`` is not a canonical public key
        """
        self._keys.add(decode_public_key(key))

    def remove(self, key: str) -> None:
        try:
            self._keys.discard(decode_public_key(key))
        except ParseError:
            pass

    def clear(self) -> None:
        self._keys.clear()

    def is_trusted(self, key: str) -> bool:
        try:
            return decode_public_key(key) in self._keys
        except ParseError:
            return False

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.is_trusted(key)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(encode_public_key(raw) for raw in self._keys))

    def __len__(self) -> int:
        return len(self._keys)
