"""Known-answer vectors for the canonical commitment and signature encoding."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ... import codec
from ..commitment import compute_root, name_hash, value_hash
from ..signing import IssuerKey
from ..values import AttributeValue

VECTOR_FILE = Path(__file__).with_name("credproof_vectors.json")


def load_vectors(path: Path = VECTOR_FILE) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return codec.loads(handle.read())


def compute_expected(vectors: Dict[str, Any]) -> Dict[str, Any]:
    hashes = vectors["entry_hashes"]
    signing = vectors["root_signature"]

    raw_entries = hashes.get("entries")
    if not isinstance(raw_entries, dict) or not raw_entries:
        raise ValueError("entry_hashes.entries must be a non-empty object")
    entries = {name: AttributeValue.from_json(value) for name, value in raw_entries.items()}

    seed = _require_hex(signing.get("seed_hex"), 64, "root_signature.seed_hex")
    root = _require_hex(signing.get("root_hex"), 64, "root_signature.root_hex")
    key = IssuerKey.from_seed(seed)

    return {
        "entry_hashes": {
            "expected_name_hex": {name: name_hash(name).hex() for name in entries},
            "expected_value_hex": {
                name: value_hash(value).hex() for name, value in entries.items()
            },
            "expected_root_hex": compute_root(entries).hex(),
        },
        "root_signature": {
            "expected_public_key": key.public_key,
            "expected_signature": key.sign_root(root),
        },
    }


def validate_vectors(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if data.get("version") != "1.0":
        errors.append("version must be 1.0")
    if data.get("hash") != "SHA-256":
        errors.append("hash must be SHA-256")
    if data.get("signature") != "Ed25519":
        errors.append("signature must be Ed25519")

    vectors = data.get("vectors")
    if not isinstance(vectors, dict):
        errors.append("vectors must be a dict")
        return errors

    try:
        expected = compute_expected(vectors)
    except (KeyError, TypeError, ValueError) as exc:
        errors.append(str(exc))
        return errors

    for section, fields in expected.items():
        actual = vectors.get(section, {})
        for field_name, value in fields.items():
            if actual.get(field_name) != value:
                errors.append(f"{section}.{field_name} mismatch")

    return errors


def _require_hex(value: Any, expected_len: int, field_name: str) -> bytes:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a hex string")
    if len(value) != expected_len:
        raise ValueError(f"{field_name} must be {expected_len} hex chars")
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"{field_name} must be valid hex") from exc
