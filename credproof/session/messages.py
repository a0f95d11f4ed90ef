"""JSON control-message schemas carried in the paired channel's text frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

from .. import codec
from .constants import (
    ENVELOPE_TYPE,
    MAX_CONTROL_MESSAGE_BYTES,
    MAX_REQUEST_FIELDS,
    MPC_REQUEST,
    POD_PRESENTATION,
    POD_REQUEST,
)
from .errors import SchemaError, SizeLimitError


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{field_name} must be an integer")
    return value


@dataclass(frozen=True)
class PodRequest:
    """Verifier asks the holder to disclose ``fields``."""

    fields: Tuple[str, ...]
    type: str = field(default=POD_REQUEST, init=False)

    def validate(self) -> None:
        if not isinstance(self.fields, tuple):
            raise SchemaError("fields must be a tuple")
        if len(self.fields) > MAX_REQUEST_FIELDS:
            raise SchemaError("too many requested fields")
        for name in self.fields:
            if not isinstance(name, str) or not name:
                raise SchemaError("requested field names must be non-empty strings")

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "fields": list(self.fields)}


@dataclass(frozen=True)
class PodPresentation:
    """
    Holder's answer to a PodRequest.

    ``presentation`` stays in its JSON form; the verifier parses it, so a
    malformed presentation is a verification failure rather than a
    transport error.
    """

    presentation: Dict[str, Any]
    issuer_pk: str
    type: str = field(default=POD_PRESENTATION, init=False)

    def validate(self) -> None:
        if not isinstance(self.presentation, dict):
            raise SchemaError("presentation must be an object")
        if not isinstance(self.issuer_pk, str) or not self.issuer_pk:
            raise SchemaError("issuerPk must be a non-empty string")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "presentation": self.presentation,
            "issuerPk": self.issuer_pk,
        }


@dataclass(frozen=True)
class MpcRequest:
    """Verifier asks the holder to join a private predicate check."""

    min_age: int
    check_name: bool
    type: str = field(default=MPC_REQUEST, init=False)

    def validate(self) -> None:
        _require_int(self.min_age, "minAge")
        if self.min_age < 0:
            raise SchemaError("minAge must be >= 0")
        if not isinstance(self.check_name, bool):
            raise SchemaError("checkName must be a boolean")

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "minAge": self.min_age, "checkName": self.check_name}


ControlMessage = Union[PodRequest, PodPresentation, MpcRequest]


def encode_envelope(message: ControlMessage) -> str:
    message.validate()
    text = codec.dumps({"type": ENVELOPE_TYPE, "payload": message.to_payload()})
    if len(text.encode("utf-8")) > MAX_CONTROL_MESSAGE_BYTES:
        raise SizeLimitError("control message too large")
    return text


def _decode_payload(payload: Dict[str, Any]) -> ControlMessage:
    message_type = payload.get("type")
    if message_type == POD_REQUEST:
        fields = payload.get("fields")
        if not isinstance(fields, list):
            raise SchemaError("fields must be a list")
        message: ControlMessage = PodRequest(fields=tuple(fields))
    elif message_type == POD_PRESENTATION:
        message = PodPresentation(
            presentation=payload.get("presentation"),
            issuer_pk=payload.get("issuerPk"),
        )
    elif message_type == MPC_REQUEST:
        min_age = payload.get("minAge", 0)
        # accept numeric strings, as sent by form-driven peers
        if isinstance(min_age, str):
            digits = min_age.strip()
            if digits.isascii() and digits.isdigit():
                min_age = int(digits)
        message = MpcRequest(
            min_age=_require_int(min_age, "minAge"),
            check_name=bool(payload.get("checkName", False)),
        )
    else:
        raise SchemaError(f"unsupported control message type: {message_type!r}")
    message.validate()
    return message


def decode_envelope(text: str) -> ControlMessage:
    """
    Parse a text frame into a control message.

    Raises:
        SchemaError: If the text is not a recognised envelope
        SizeLimitError: If the text exceeds the control message limit
    """
    if not isinstance(text, str):
        raise SchemaError("envelope must be text")
    if len(text.encode("utf-8")) > MAX_CONTROL_MESSAGE_BYTES:
        raise SizeLimitError("control message too large")
    try:
        envelope = codec.loads(text)
    except ValueError as exc:
        raise SchemaError(f"envelope is not valid JSON: {exc}") from exc
    if not isinstance(envelope, dict) or envelope.get("type") != ENVELOPE_TYPE:
        raise SchemaError("unrecognised envelope")
    payload = envelope.get("payload")
    if not isinstance(payload, dict):
        raise SchemaError("envelope payload must be an object")
    try:
        return _decode_payload(payload)
    except (TypeError, ValueError) as exc:
        raise SchemaError(f"invalid control payload: {exc}") from exc
