"""
Cryptographic configuration for credential commitments and disclosure.

Every value here is part of the canonical encoding: changing any of them
changes commitment roots and invalidates previously issued signatures.
"""

# ============================================================================
# HASH FUNCTION
# ============================================================================

HASH_FUNCTION = "SHA-256"
HASH_OUTPUT_BYTES = 32

# ============================================================================
# DOMAIN SEPARATION
# ============================================================================

DOMAIN_SEPARATORS = {
    "entry_name": b"CREDPROOF_ENTRY_NAME_V1",
    "entry_value": b"CREDPROOF_ENTRY_VALUE_V1",
    "merkle_node": b"MERKLE_NODE_V1",
    "root_signature": b"CREDPROOF_ROOT_SIG_V1",
    "mpc_name": b"CREDPROOF_MPC_NAME_V1",
}

# ============================================================================
# ATTRIBUTE VALUE ENCODING
# ============================================================================

# Type tags prefixed to a value's canonical bytes before hashing.
VALUE_TAG_INT = 0x01
VALUE_TAG_STRING = 0x02

# Length prefix width (big endian) for canonical value payloads.
VALUE_LENGTH_BYTES = 4

# ============================================================================
# SIGNATURES
# ============================================================================

# Ed25519 via PyNaCl. Keys and signatures travel as standard padded base64
# of the raw bytes; the signed message is DOMAIN_SEPARATORS["root_signature"]
# followed by the 32-byte root.
SIGNATURE_SCHEME = "Ed25519"
PUBLIC_KEY_BYTES = 32
PRIVATE_KEY_SEED_BYTES = 32
SIGNATURE_BYTES = 64

# ============================================================================
# CREDENTIAL CONTENT
# ============================================================================

TIMESTAMP_ENTRY = "timestamp"
MAX_ENTRIES = 256
MAX_NAME_BYTES = 256
# Photos travel as data URIs, so string values may be large. The cap also
# applies to the sum of all string values in one record.
MAX_STRING_VALUE_BYTES = 1024 * 1024
MAX_RECORD_STRING_BYTES = MAX_STRING_VALUE_BYTES
MAX_INT_VALUE_BYTES = 512

# Largest serialized presentation of any valid record. JSON escaping grows a
# string at most six-fold (control characters become \u00XX). Names, int
# values and proofs fit in the per-entry allowance.
PRESENTATION_ENTRY_ALLOWANCE = 8 * 1024
MAX_PRESENTATION_BYTES = 6 * MAX_RECORD_STRING_BYTES + MAX_ENTRIES * PRESENTATION_ENTRY_ALLOWANCE

DEFAULT_DISCLOSURE_FIELDS = ("age", "residency", "name", "photo")

# ============================================================================
# JOIN CODES
# ============================================================================

JOIN_CODE_ENTROPY_BYTES = 16

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert HASH_FUNCTION == "SHA-256", "Invalid hash function"
    assert HASH_OUTPUT_BYTES == 32, "SHA-256 digests are 32 bytes"
    assert SIGNATURE_SCHEME == "Ed25519", "Invalid signature scheme"
    assert len(set(DOMAIN_SEPARATORS.values())) == len(
        DOMAIN_SEPARATORS
    ), "Domain separators must be distinct"
    assert VALUE_TAG_INT != VALUE_TAG_STRING, "Value tags must differ"
    assert JOIN_CODE_ENTROPY_BYTES >= 16, "Join codes need >= 128 bits"
    assert TIMESTAMP_ENTRY not in DEFAULT_DISCLOSURE_FIELDS
    assert MAX_RECORD_STRING_BYTES >= MAX_STRING_VALUE_BYTES
    assert PRESENTATION_ENTRY_ALLOWANCE >= 6 * MAX_NAME_BYTES + 4 * MAX_INT_VALUE_BYTES
    return True


# Auto-validate on import
validate_config()
