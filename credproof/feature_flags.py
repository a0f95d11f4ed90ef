"""
Feature flags read from the environment, with in-memory overrides for tests.

    CREDPROOF_ENGINE         secure-computation engine name (default "mock")
    CREDPROOF_ISSUER_POLICY  "enforce" or "warn" on issuer-key mismatch

WARNING: the default engine provides no input privacy. Select a real engine
before exchanging private inputs with an untrusted party.
"""

from __future__ import annotations

import os
from typing import Final

ISSUER_POLICY_ENFORCE: Final[str] = "enforce"
ISSUER_POLICY_WARN: Final[str] = "warn"

_VALID_ISSUER_POLICIES: Final[tuple[str, ...]] = (ISSUER_POLICY_ENFORCE, ISSUER_POLICY_WARN)
_DEFAULT_ISSUER_POLICY: Final[str] = ISSUER_POLICY_ENFORCE
_ISSUER_POLICY_ENV: Final[str] = "CREDPROOF_ISSUER_POLICY"

_DEFAULT_ENGINE: Final[str] = "mock"
_ENGINE_ENV: Final[str] = "CREDPROOF_ENGINE"

_engine_override: str | None = None
_issuer_policy_override: str | None = None


def _normalize(value: str | None, *, what: str, valid: tuple[str, ...] | None) -> str | None:
    if value is None:
        return None

    if not isinstance(value, str):
        raise ValueError(f"Invalid {what}: {value!r}")

    if value == "":
        return None

    if valid is not None and value not in valid:
        raise ValueError(
            f"Invalid {what}: {value!r}. Valid options: {', '.join(valid)}"
        )

    return value


def get_engine_name(prefer: str | None = None) -> str:
    """
    Resolve the engine name: prefer, then override, then env, then default.

    Names are validated against the engine registry by the caller.
    """
    preferred = _normalize(prefer, what="engine name", valid=None)
    if preferred is not None:
        return preferred

    if _engine_override is not None:
        return _engine_override

    env_engine = _normalize(os.getenv(_ENGINE_ENV), what="engine name", valid=None)
    if env_engine is not None:
        return env_engine

    return _DEFAULT_ENGINE


def set_engine_name(value: str | None) -> None:
    """Set in-memory engine override (testing only); None clears it."""
    global _engine_override
    _engine_override = _normalize(value, what="engine name", valid=None)


def get_issuer_policy(prefer: str | None = None) -> str:
    """
    Resolve the issuer-key mismatch policy in precedence order.

    Raises:
        ValueError: If a provided policy value is invalid.
    """
    preferred = _normalize(prefer, what="issuer policy", valid=_VALID_ISSUER_POLICIES)
    if preferred is not None:
        return preferred

    if _issuer_policy_override is not None:
        return _issuer_policy_override

    env_policy = _normalize(
        os.getenv(_ISSUER_POLICY_ENV), what="issuer policy", valid=_VALID_ISSUER_POLICIES
    )
    if env_policy is not None:
        return env_policy

    return _DEFAULT_ISSUER_POLICY


def set_issuer_policy(value: str | None) -> None:
    """Set in-memory issuer policy override (testing only); None clears it."""
    global _issuer_policy_override
    _issuer_policy_override = _normalize(
        value, what="issuer policy", valid=_VALID_ISSUER_POLICIES
    )
