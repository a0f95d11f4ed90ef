"""
Tagged attribute values.

An attribute is either an arbitrary-precision signed integer or a UTF-8
string. Each kind has exactly one canonical byte encoding, used for hashing,
and one JSON form, used on the wire.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..codec import is_bigint_tag, tag_bigint, untag_bigint
from .config import (
    MAX_INT_VALUE_BYTES,
    MAX_STRING_VALUE_BYTES,
    VALUE_LENGTH_BYTES,
    VALUE_TAG_INT,
    VALUE_TAG_STRING,
)
from .exceptions import ParseError


class ValueKind(Enum):
    INT = "int"
    STRING = "string"


@functools.total_ordering
@dataclass(frozen=True)
class AttributeValue:
    """
    Attribute value tagged with its kind.

    Values of the same kind order naturally; ordering across kinds raises
    TypeError so comparisons are always explicit about what they compare.

    Example:
        >>> AttributeValue.of(25) >= AttributeValue.of(18)
        True
    """

    kind: ValueKind
    value: Union[int, str]

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ValueKind):
            raise TypeError("kind must be ValueKind")
        if self.kind is ValueKind.INT:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise TypeError("int attribute value must be int")
            if (self.value.bit_length() + 8) // 8 > MAX_INT_VALUE_BYTES:
                raise ValueError("int attribute value too large")
        else:
            if not isinstance(self.value, str):
                raise TypeError("string attribute value must be str")
            if len(self.value.encode("utf-8")) > MAX_STRING_VALUE_BYTES:
                raise ValueError("string attribute value too large")

    @classmethod
    def of(cls, value: Union[int, str, "AttributeValue"]) -> "AttributeValue":
        if isinstance(value, AttributeValue):
            return value
        if isinstance(value, bool):
            raise TypeError("bool is not a supported attribute value")
        if isinstance(value, int):
            return cls(ValueKind.INT, value)
        if isinstance(value, str):
            return cls(ValueKind.STRING, value)
        raise TypeError(f"unsupported attribute value type: {type(value).__name__}")

    @property
    def is_int(self) -> bool:
        return self.kind is ValueKind.INT

    def to_bytes(self) -> bytes:
        """Canonical encoding: tag || len32be || payload."""
        if self.kind is ValueKind.INT:
            length = (self.value.bit_length() + 8) // 8
            payload = self.value.to_bytes(length, "big", signed=True)
            tag = VALUE_TAG_INT
        else:
            payload = self.value.encode("utf-8")
            tag = VALUE_TAG_STRING
        return bytes([tag]) + len(payload).to_bytes(VALUE_LENGTH_BYTES, "big") + payload

    def to_json(self) -> dict:
        if self.kind is ValueKind.INT:
            return {"type": self.kind.value, "value": tag_bigint(self.value)}
        return {"type": self.kind.value, "value": self.value}

    @classmethod
    def from_json(cls, data: Any) -> "AttributeValue":
        """
        Parse ``{"type", "value"}``.

        Integer values are accepted either still tagged or already revived
        by the codec.

        Raises:
            ParseError: If the shape or type tag is invalid
        """
        if not isinstance(data, dict):
            raise ParseError("attribute value must be an object")
        kind = data.get("type")
        raw = data.get("value")
        try:
            if kind == ValueKind.INT.value:
                if is_bigint_tag(raw):
                    raw = untag_bigint(raw)
                if isinstance(raw, bool) or not isinstance(raw, int):
                    raise ParseError("int attribute value must be an integer")
                return cls(ValueKind.INT, raw)
            if kind == ValueKind.STRING.value:
                if not isinstance(raw, str):
                    raise ParseError("string attribute value must be a string")
                return cls(ValueKind.STRING, raw)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"invalid attribute value: {exc}") from exc
        raise ParseError(f"unknown attribute value type: {kind!r}")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AttributeValue):
            return NotImplemented
        if self.kind is not other.kind:
            raise TypeError(
                f"cannot order {self.kind.value} against {other.kind.value}"
            )
        return self.value < other.value

    def __str__(self) -> str:
        return str(self.value)
