"""
Issuer-signed credential records and credential bundles.

A record is created once at issuance and never changes. The issuer signs the
commitment root, not the entries, so any subset of entries can later be
revealed and still be checked against the same signature.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .. import codec
from .commitment import compute_root, validate_name
from .config import MAX_ENTRIES, MAX_RECORD_STRING_BYTES, TIMESTAMP_ENTRY
from .exceptions import ParseError
from .signing import IssuerKey, decode_public_key, decode_signature, verify_root_signature
from .values import AttributeValue

logger = logging.getLogger(__name__)

RawValue = Union[int, str, AttributeValue]


def _freeze_entries(entries: Mapping[str, RawValue]) -> Mapping[str, AttributeValue]:
    if not isinstance(entries, Mapping):
        raise TypeError("entries must be a mapping")
    if not entries:
        raise ValueError("a credential needs at least one entry")
    if len(entries) > MAX_ENTRIES:
        raise ValueError(f"a credential holds at most {MAX_ENTRIES} entries")
    frozen = {validate_name(name): AttributeValue.of(value) for name, value in entries.items()}
    string_bytes = sum(len(v.value.encode("utf-8")) for v in frozen.values() if not v.is_int)
    if string_bytes > MAX_RECORD_STRING_BYTES:
        raise ValueError(f"string values exceed {MAX_RECORD_STRING_BYTES} bytes in total")
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class CredentialRecord:
    """
    Immutable, issuer-signed set of named attribute values.

    Attributes:
        entries: attribute name -> AttributeValue (read-only view)
        signature: canonical base64 Ed25519 signature over the root
        signer_public_key: canonical base64 issuer public key
    """

    entries: Mapping[str, AttributeValue]
    signature: str
    signer_public_key: str
    _root: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", _freeze_entries(self.entries))
        object.__setattr__(self, "_root", compute_root(self.entries))

    @property
    def root(self) -> bytes:
        return self._root

    def get(self, name: str) -> Optional[AttributeValue]:
        return self.entries.get(name)

    def verify_signature(self) -> None:
        """
        Raises:
            SignatureInvalid: If the issuer signature does not cover the root
        """
        verify_root_signature(self.root, self.signature, self.signer_public_key)

    def to_json(self) -> Dict[str, Any]:
        return {
            "entries": {name: value.to_json() for name, value in self.entries.items()},
            "signature": self.signature,
            "signerPublicKey": self.signer_public_key,
        }

    def serialize(self) -> str:
        return codec.dumps(self.to_json())

    @classmethod
    def from_json(cls, data: Any) -> "CredentialRecord":
        """
        Raises:
            ParseError: If the record shape, values, or encodings are invalid
        """
        if not isinstance(data, dict):
            raise ParseError("credential record must be an object")
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, dict) or not raw_entries:
            raise ParseError("credential record entries must be a non-empty object")
        signature = data.get("signature")
        public_key = data.get("signerPublicKey")
        decode_signature(signature)
        decode_public_key(public_key)
        entries = {name: AttributeValue.from_json(value) for name, value in raw_entries.items()}
        try:
            return cls(entries=entries, signature=signature, signer_public_key=public_key)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"invalid credential record: {exc}") from exc

    @classmethod
    def deserialize(cls, text: Union[str, bytes]) -> "CredentialRecord":
        try:
            data = codec.loads(text)
        except ValueError as exc:
            raise ParseError(f"credential record is not valid JSON: {exc}") from exc
        return cls.from_json(data)


def issue_credential(
    issuer_key: IssuerKey,
    attributes: Mapping[str, RawValue],
    *,
    timestamp_ms: Optional[int] = None,
) -> CredentialRecord:
    """
    Sign a new credential record.

    A ``timestamp`` entry (milliseconds since the epoch) is added so that two
    issuances of the same attributes commit to different roots.

    Raises:
        ValueError: If attributes already contain ``timestamp`` or are invalid
    """
    if TIMESTAMP_ENTRY in attributes:
        raise ValueError(f"{TIMESTAMP_ENTRY!r} is reserved for issuance")
    entries: Dict[str, RawValue] = dict(attributes)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    entries[TIMESTAMP_ENTRY] = timestamp_ms

    frozen = _freeze_entries(entries)
    root = compute_root(frozen)
    signature = issuer_key.sign_root(root)
    logger.debug("issued credential root=%s entries=%d", root.hex(), len(frozen))
    return CredentialRecord(
        entries=frozen, signature=signature, signer_public_key=issuer_key.public_key
    )


@dataclass(frozen=True)
class IdentityData:
    """Identity attributes an issuer attests to."""

    age: int
    residency: str
    name: str
    photo: Optional[str] = None

    def to_attributes(self) -> Dict[str, RawValue]:
        attributes: Dict[str, RawValue] = {
            "age": self.age,
            "residency": self.residency,
            "name": self.name,
        }
        if self.photo:
            attributes["photo"] = self.photo
        return attributes


@dataclass(frozen=True)
class CredentialBundle:
    """
    What a holder imports: the serialized record plus the issuer key.

    Wire form: ``{"pod": "<record JSON text>", "issuerPk": "<base64>"}``.
    """

    record: CredentialRecord
    issuer_pk: str

    def to_json(self) -> Dict[str, Any]:
        return {"pod": self.record.serialize(), "issuerPk": self.issuer_pk}

    def serialize(self) -> str:
        return codec.dumps(self.to_json())

    @classmethod
    def deserialize(cls, text: Union[str, bytes]) -> "CredentialBundle":
        """
        Raises:
            ParseError: If the bundle or its embedded record is malformed
        """
        try:
            data = codec.loads(text)
        except ValueError as exc:
            raise ParseError(f"bundle is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError("bundle must be an object")
        pod = data.get("pod")
        issuer_pk = data.get("issuerPk")
        if not pod or not issuer_pk:
            raise ParseError("bundle requires pod and issuerPk")
        if not isinstance(pod, str):
            raise ParseError("bundle pod must be serialized record text")
        decode_public_key(issuer_pk)
        return cls(record=CredentialRecord.deserialize(pod), issuer_pk=issuer_pk)
