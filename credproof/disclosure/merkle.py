"""
Merkle tree utilities for credential commitments.
Uses SHA-256 with domain separation for node hashing.
"""

import hashlib
from typing import Dict, List, Sequence, Tuple

from .config import DOMAIN_SEPARATORS, HASH_OUTPUT_BYTES


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Hash two Merkle node hashes.

    Args:
        left: Left child hash (32 bytes)
        right: Right child hash (32 bytes)

    Returns:
        32-byte SHA-256 hash

    Note:
        Uses fixed left||right ordering (no sorting).
        Domain separation applied.
    """
    domain_sep = DOMAIN_SEPARATORS["merkle_node"]
    return hashlib.sha256(domain_sep + left + right).digest()


def build_tree(leaves: List[bytes]) -> Tuple[bytes, Dict[int, List[Tuple[bytes, bool]]]]:
    """
    Build a Merkle tree and generate authentication paths.

    Args:
        leaves: List of leaf hashes (each 32 bytes)

    Returns:
        (root_hash, auth_paths)
        - root_hash: 32-byte Merkle root
        - auth_paths: Dict mapping leaf_index -> [(sibling, is_left), ...]

    Algorithm:
        - If odd number of nodes at any level, pair the last one with itself
        - Build tree bottom-up
        - Track sibling positions for authentication paths
    """
    if not leaves:
        raise ValueError("Cannot build tree with zero leaves")

    if len(leaves) == 1:
        return leaves[0], {0: []}

    auth_paths: Dict[int, List[Tuple[bytes, bool]]] = {
        i: [] for i in range(len(leaves))
    }

    current_level: List[Tuple[bytes, List[int]]] = [
        (leaf, [i]) for i, leaf in enumerate(leaves)
    ]

    while len(current_level) > 1:
        next_level: List[Tuple[bytes, List[int]]] = []

        for i in range(0, len(current_level), 2):
            left_hash, left_indices = current_level[i]

            if i + 1 < len(current_level):
                right_hash, right_indices = current_level[i + 1]
                duplicated = False
            else:
                right_hash, right_indices = left_hash, left_indices
                duplicated = True

            parent = hash_node(left_hash, right_hash)

            # For left child: sibling is right (is_left=False)
            # For right child: sibling is left (is_left=True)
            for leaf_idx in left_indices:
                auth_paths[leaf_idx].append((right_hash, False))
            if not duplicated:
                for leaf_idx in right_indices:
                    auth_paths[leaf_idx].append((left_hash, True))

            if duplicated:
                combined_indices = list(left_indices)
            else:
                combined_indices = left_indices + right_indices
            next_level.append((parent, combined_indices))

        current_level = next_level

    root = current_level[0][0]
    return root, auth_paths


def verify_path(
    leaf_hash: bytes,
    path: List[Tuple[bytes, bool]],
    root: bytes
) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        leaf_hash: Hash of the leaf (32 bytes)
        path: Authentication path [(sibling, is_left), ...]
        root: Expected root hash (32 bytes)

    Returns:
        True if path is valid, False otherwise
    """
    return fold_path(leaf_hash, path) == root


def fold_path(leaf_hash: bytes, path: List[Tuple[bytes, bool]]) -> bytes:
    """Hash a leaf up through its authentication path."""
    current = leaf_hash

    for sibling, is_left in path:
        if is_left:
            # Sibling is on left, current on right
            current = hash_node(sibling, current)
        else:
            current = hash_node(current, sibling)

    return current


def path_to_index(path: List[Tuple[bytes, bool]]) -> Tuple[int, List[bytes]]:
    """
    Convert an authentication path to (index, siblings).

    Bit ``k`` of the index is set when the node at level ``k`` is a right
    child, i.e. when its sibling sits on the left.
    """
    index = 0
    siblings: List[bytes] = []
    for level, (sibling, is_left) in enumerate(path):
        if is_left:
            index |= 1 << level
        siblings.append(sibling)
    return index, siblings


def index_to_path(index: int, siblings: Sequence[bytes]) -> List[Tuple[bytes, bool]]:
    """
    Inverse of path_to_index.

    Raises:
        ValueError: If the index needs more levels than there are siblings,
            or a sibling is not a 32-byte hash
    """
    if index < 0 or index >> len(siblings):
        raise ValueError("index out of range for sibling count")
    path: List[Tuple[bytes, bool]] = []
    for level, sibling in enumerate(siblings):
        if not isinstance(sibling, bytes) or len(sibling) != HASH_OUTPUT_BYTES:
            raise ValueError("sibling must be a 32-byte hash")
        path.append((sibling, bool((index >> level) & 1)))
    return path
