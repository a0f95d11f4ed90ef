"""
Unit tests for feature flag engine and issuer policy selection.
"""

import pytest

from credproof import feature_flags


@pytest.fixture(autouse=True)
def reset_feature_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    feature_flags.set_engine_name(None)
    feature_flags.set_issuer_policy(None)
    monkeypatch.delenv("CREDPROOF_ENGINE", raising=False)
    monkeypatch.delenv("CREDPROOF_ISSUER_POLICY", raising=False)
    yield
    feature_flags.set_engine_name(None)
    feature_flags.set_issuer_policy(None)


def test_defaults() -> None:
    assert feature_flags.get_engine_name() == "mock"
    assert feature_flags.get_issuer_policy() == "enforce"


def test_env_vars_control_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CREDPROOF_ENGINE", "garbled")
    monkeypatch.setenv("CREDPROOF_ISSUER_POLICY", "warn")
    assert feature_flags.get_engine_name() == "garbled"
    assert feature_flags.get_issuer_policy() == "warn"


def test_prefer_overrides_everything(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CREDPROOF_ISSUER_POLICY", "warn")
    feature_flags.set_engine_name("other")
    assert feature_flags.get_engine_name(prefer="mock") == "mock"
    assert feature_flags.get_issuer_policy(prefer="enforce") == "enforce"


def test_override_beats_env_and_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CREDPROOF_ISSUER_POLICY", "warn")
    feature_flags.set_issuer_policy("enforce")
    assert feature_flags.get_issuer_policy() == "enforce"
    feature_flags.set_issuer_policy(None)
    assert feature_flags.get_issuer_policy() == "warn"


def test_empty_env_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CREDPROOF_ENGINE", "")
    assert feature_flags.get_engine_name() == "mock"


def test_invalid_issuer_policy_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValueError, match="Invalid issuer policy"):
        feature_flags.get_issuer_policy(prefer="strict")
    with pytest.raises(ValueError, match="Invalid issuer policy"):
        feature_flags.set_issuer_policy("strict")
    monkeypatch.setenv("CREDPROOF_ISSUER_POLICY", "loose")
    with pytest.raises(ValueError, match="Invalid issuer policy"):
        feature_flags.get_issuer_policy()
