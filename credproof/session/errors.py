"""Session transport and protocol error types."""


class SessionError(Exception):
    """Base error for paired-session failures."""


class TransportError(SessionError):
    """Raised when the paired channel fails, closes, or cannot be opened."""


class QueueClaimedError(TransportError):
    """Raised when a second consumer claims the protocol-message queue."""


class ProtocolError(SessionError):
    """Raised on an unexpected counterpart or message during a session."""


class SchemaError(ProtocolError):
    """Raised when a control message fails schema validation."""


class SizeLimitError(ProtocolError):
    """Raised when a message or frame exceeds configured size limits."""


class OutputShapeError(ProtocolError):
    """Raised when the engine's output is not the expected result record."""


class SessionStateError(SessionError):
    """Raised when a session is run outside the Created state."""
