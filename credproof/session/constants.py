"""Constants for the paired session channel and control messages."""

from __future__ import annotations

from ..disclosure.config import MAX_PRESENTATION_BYTES

# Envelope discriminator for application control/data messages.
ENVELOPE_TYPE = "DATA"

POD_REQUEST = "POD_REQUEST"
POD_PRESENTATION = "POD_PRESENTATION"
MPC_REQUEST = "MPC_REQUEST"

# Libp2p-style protocol id for stream-backed pairing channels.
PAIRING_PROTOCOL_ID = "/credproof/pair/1.0.0"

# A POD_PRESENTATION envelope wraps the largest presentation with its type
# tags and issuer key; the frame limit in limits.py follows this value.
CONTROL_ENVELOPE_ALLOWANCE = 4 * 1024
MAX_CONTROL_MESSAGE_BYTES = MAX_PRESENTATION_BYTES + CONTROL_ENVELOPE_ALLOWANCE
MAX_REQUEST_FIELDS = 64

# Party identities known to the secure-computation engine.
PARTY_REQUIREMENT = "alice"
PARTY_SUBJECT = "bob"
PARTIES = frozenset({PARTY_REQUIREMENT, PARTY_SUBJECT})

# Approximate traffic of one age/residency/name predicate evaluation with a
# garbled-circuit engine. Used for progress when an engine reports no
# expected total of its own; never a completion signal.
DEFAULT_EXPECTED_TOTAL_BYTES = 150_000
