"""Paired session transport and secure predicate evaluation."""

from .channel import (
    LoopbackChannel,
    PairedChannel,
    StreamChannel,
    open_loopback_pair,
    open_pairing_channel,
    register_pairing_protocol,
)
from .constants import MPC_REQUEST, PAIRING_PROTOCOL_ID, POD_PRESENTATION, POD_REQUEST
from .driver import (
    OutputRecord,
    RequirementInput,
    Role,
    SecureComputationSession,
    SessionState,
    SubjectInput,
    run_secure_computation,
)
from .engine import ENGINE_REGISTRY, get_protocol_engine, register_engine
from .errors import (
    OutputShapeError,
    ProtocolError,
    QueueClaimedError,
    SchemaError,
    SessionError,
    SessionStateError,
    SizeLimitError,
    TransportError,
)
from .messages import MpcRequest, PodPresentation, PodRequest, decode_envelope, encode_envelope
from .transport import SessionTransport

__all__ = [
    "PairedChannel",
    "LoopbackChannel",
    "StreamChannel",
    "open_loopback_pair",
    "open_pairing_channel",
    "register_pairing_protocol",
    "PAIRING_PROTOCOL_ID",
    "POD_REQUEST",
    "POD_PRESENTATION",
    "MPC_REQUEST",
    "PodRequest",
    "PodPresentation",
    "MpcRequest",
    "encode_envelope",
    "decode_envelope",
    "SessionTransport",
    "Role",
    "SessionState",
    "RequirementInput",
    "SubjectInput",
    "OutputRecord",
    "SecureComputationSession",
    "run_secure_computation",
    "ENGINE_REGISTRY",
    "get_protocol_engine",
    "register_engine",
    "SessionError",
    "TransportError",
    "QueueClaimedError",
    "ProtocolError",
    "SchemaError",
    "SizeLimitError",
    "OutputShapeError",
    "SessionStateError",
]
