"""
Credential commitments and entry inclusion proofs.

A record's entries are sorted by name and laid out as consecutive leaf
pairs ``hash(name), hash(value)``. The Merkle root over those leaves is the
commitment the issuer signs. Proving one entry therefore means proving the
name leaf, whose first sibling is always the value hash.

Example:
    >>> entries = {"age": AttributeValue.of(25), "name": AttributeValue.of("Alice")}
    >>> root = compute_root(entries)
    >>> proof = generate_entry_proof(entries, "age")
    >>> verify_inclusion(proof) and proof.root == root
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .config import DOMAIN_SEPARATORS, HASH_OUTPUT_BYTES, MAX_NAME_BYTES
from .exceptions import ParseError
from .merkle import build_tree, fold_path, index_to_path, path_to_index
from .security import constant_time_compare, hash_with_domain
from .values import AttributeValue


def name_hash(name: str) -> bytes:
    if not isinstance(name, str):
        raise TypeError("attribute name must be str")
    return hash_with_domain(DOMAIN_SEPARATORS["entry_name"], name.encode("utf-8"))


def value_hash(value: AttributeValue) -> bytes:
    if not isinstance(value, AttributeValue):
        raise TypeError("value must be AttributeValue")
    return hash_with_domain(DOMAIN_SEPARATORS["entry_value"], value.to_bytes())


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise ValueError("attribute name must be a non-empty string")
    if len(name.encode("utf-8")) > MAX_NAME_BYTES:
        raise ValueError("attribute name too long")
    return name


@dataclass(frozen=True)
class InclusionProof:
    """
    Proof that ``leaf`` hashes up to ``root`` through ``siblings``.

    ``index`` is the leaf position; bit ``k`` set means the running hash is
    the right child at level ``k``.
    """

    leaf: bytes
    siblings: Tuple[bytes, ...]
    root: bytes
    index: int

    def to_json(self) -> Dict[str, Any]:
        return {
            "root": self.root.hex(),
            "leaf": self.leaf.hex(),
            "index": self.index,
            "siblings": [sibling.hex() for sibling in self.siblings],
        }

    @classmethod
    def from_json(cls, data: Any) -> "InclusionProof":
        """
        Raises:
            ParseError: If the proof is not ``{root, leaf, index, siblings}``
                with hex hashes
        """
        if not isinstance(data, dict):
            raise ParseError("proof must be an object")
        siblings = data.get("siblings")
        index = data.get("index")
        if not isinstance(siblings, list):
            raise ParseError("proof siblings must be a list")
        if isinstance(index, bool) or not isinstance(index, int):
            raise ParseError("proof index must be an integer")
        return cls(
            leaf=_parse_hash(data.get("leaf"), "leaf"),
            siblings=tuple(_parse_hash(s, "sibling") for s in siblings),
            root=_parse_hash(data.get("root"), "root"),
            index=index,
        )


def _parse_hash(value: Any, field: str) -> bytes:
    if not isinstance(value, str):
        raise ParseError(f"proof {field} must be a hex string")
    try:
        raw = bytes.fromhex(value)
    except ValueError as exc:
        raise ParseError(f"proof {field} must be valid hex") from exc
    if len(raw) != HASH_OUTPUT_BYTES:
        raise ParseError(f"proof {field} must be {HASH_OUTPUT_BYTES} bytes")
    return raw


def _entry_leaves(entries: Mapping[str, AttributeValue]) -> Tuple[List[str], List[bytes]]:
    if not entries:
        raise ValueError("Cannot commit to zero entries")
    names = sorted(validate_name(name) for name in entries)
    leaves: List[bytes] = []
    for name in names:
        leaves.append(name_hash(name))
        leaves.append(value_hash(AttributeValue.of(entries[name])))
    return names, leaves


def compute_root(entries: Mapping[str, AttributeValue]) -> bytes:
    """
    Compute the commitment root of a set of entries.

    The result depends only on the (name, value) pairs, not on the
    mapping's iteration order.

    Raises:
        ValueError: If entries is empty or a name is invalid
    """
    _, leaves = _entry_leaves(entries)
    root, _ = build_tree(leaves)
    return root


def generate_entry_proof(
    entries: Mapping[str, AttributeValue], name: str
) -> InclusionProof:
    """
    Build the inclusion proof for one entry's name leaf.

    Raises:
        KeyError: If ``name`` is not an entry
    """
    names, leaves = _entry_leaves(entries)
    if name not in entries:
        raise KeyError(name)
    root, paths = build_tree(leaves)
    leaf_index = 2 * names.index(name)
    index, siblings = path_to_index(paths[leaf_index])
    return InclusionProof(
        leaf=leaves[leaf_index],
        siblings=tuple(siblings),
        root=root,
        index=index,
    )


def verify_inclusion(proof: Any) -> bool:
    """
    Structurally verify an inclusion proof.

    Recomputes the root from ``leaf`` and ``siblings`` and compares it to the
    claimed root. Never raises: anything malformed is simply invalid.
    """
    try:
        if not isinstance(proof, InclusionProof):
            return False
        if not proof.siblings:
            return False
        if not isinstance(proof.leaf, bytes) or len(proof.leaf) != HASH_OUTPUT_BYTES:
            return False
        if not isinstance(proof.root, bytes) or len(proof.root) != HASH_OUTPUT_BYTES:
            return False
        if isinstance(proof.index, bool) or not isinstance(proof.index, int):
            return False
        path = index_to_path(proof.index, proof.siblings)
    except (TypeError, ValueError):
        return False
    return constant_time_compare(fold_path(proof.leaf, path), proof.root)
