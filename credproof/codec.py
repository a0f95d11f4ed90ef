"""
JSON text codec with tagged arbitrary-precision integers.

JSON numbers are not safe carriers for integers beyond 2**53 - 1 once a
payload leaves Python, so such integers are written as
``{"__bigint": "<decimal string>"}`` and revived on load.
"""

from __future__ import annotations

import json
from typing import Any

BIGINT_TAG = "__bigint"
MAX_SAFE_INTEGER = 2**53 - 1


def tag_bigint(value: int) -> dict:
    return {BIGINT_TAG: str(value)}


def is_bigint_tag(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and len(value) == 1
        and isinstance(value.get(BIGINT_TAG), str)
    )


def untag_bigint(value: dict) -> int:
    text = value[BIGINT_TAG]
    # int() accepts "1_000" and surrounding whitespace; the tag does not.
    body = text[1:] if text.startswith("-") else text
    if not body.isdigit() or not body.isascii():
        raise ValueError(f"invalid {BIGINT_TAG} literal: {text!r}")
    return int(text)


def _replace(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        return tag_bigint(value)
    if isinstance(value, dict):
        return {key: _replace(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_replace(item) for item in value]
    return value


def _revive(obj: dict) -> Any:
    if is_bigint_tag(obj):
        return untag_bigint(obj)
    return obj


def dumps(value: Any) -> str:
    """
    Serialize to compact JSON, tagging integers outside the safe range.

    Already-tagged values pass through unchanged.
    """
    return json.dumps(
        _replace(value), separators=(",", ":"), ensure_ascii=False, allow_nan=False
    )


def loads(text: str | bytes) -> Any:
    """
    Parse JSON, reviving ``__bigint`` tags into ``int``.

    Raises:
        ValueError: On any malformed input, including nesting too deep to parse
    """
    try:
        return json.loads(text, object_hook=_revive)
    except RecursionError as exc:
        raise ValueError("JSON nested too deeply") from exc
