"""
Unit tests for security utilities module.

Tests randomness, domain-separated hashing, constant-time comparison and
join code generation.
"""

import hashlib
import os
import re

import pytest

from credproof.disclosure import security
from credproof.disclosure.config import DOMAIN_SEPARATORS, validate_config


class TestRandomnessSource:
    """Test cryptographically secure randomness source."""

    def test_init(self):
        """Test RandomnessSource initialization."""
        rng = security.RandomnessSource()
        assert rng._pid == os.getpid()

    def test_get_random_bytes(self):
        """Test random bytes generation."""
        random_bytes = security.RandomnessSource().get_random_bytes(32)
        assert len(random_bytes) == 32
        assert isinstance(random_bytes, bytes)

    @pytest.mark.parametrize("bad", [0, -1])
    def test_rejects_non_positive(self, bad):
        rng = security.RandomnessSource()
        with pytest.raises(ValueError):
            rng.get_random_bytes(bad)


class TestHashWithDomain:
    """Test domain-separated SHA-256."""

    def test_matches_sha256_of_concatenation(self):
        domain = DOMAIN_SEPARATORS["entry_name"]
        assert security.hash_with_domain(domain, b"age") == hashlib.sha256(domain + b"age").digest()

    def test_domains_separate_outputs(self):
        outputs = {security.hash_with_domain(d, b"x") for d in DOMAIN_SEPARATORS.values()}
        assert len(outputs) == len(DOMAIN_SEPARATORS)

    def test_type_and_empty_checks(self):
        with pytest.raises(TypeError):
            security.hash_with_domain("domain", b"x")
        with pytest.raises(TypeError):
            security.hash_with_domain(b"domain", "x")
        with pytest.raises(ValueError, match="cannot be empty"):
            security.hash_with_domain(b"", b"x")


class TestConstantTimeCompare:
    def test_equal_and_unequal(self):
        assert security.constant_time_compare(b"a" * 32, b"a" * 32)
        assert not security.constant_time_compare(b"a" * 32, b"b" * 32)
        assert not security.constant_time_compare(b"a", b"aa")


class TestJoinCode:
    """Join codes carry 128 bits and read as lowercase base32."""

    def test_shape(self):
        code = security.generate_join_code()
        assert re.fullmatch(r"[a-z2-7]{26}", code)

    def test_codes_differ(self):
        assert len({security.generate_join_code() for _ in range(50)}) == 50

    def test_uses_given_source(self):
        class FixedSource(security.RandomnessSource):
            def get_random_bytes(self, n):
                return b"\x00" * n

        assert security.generate_join_code(FixedSource()) == "a" * 26


def test_config_validates():
    assert validate_config() is True
