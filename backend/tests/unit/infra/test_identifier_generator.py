"""Unit tests for identifier generators."""

from __future__ import annotations

import pytest
from refresh_engine.infra.crypto.secure_identifier_generator import SecureIdentifierGenerator
from refresh_engine.services._shared.ports import SequentialIdentifierGenerator


def test_secure_ids_are_hex_and_unique():
    gen = SecureIdentifierGenerator()
    values = {gen.new_id() for _ in range(500)}
    assert len(values) == 500
    sample = next(iter(values))
    assert len(sample) == 64
    int(sample, 16)  # hex-encoded


def test_secure_ids_require_128_bits():
    assert len(SecureIdentifierGenerator(nbytes=16).new_id()) == 32
    with pytest.raises(ValueError):
        SecureIdentifierGenerator(nbytes=8)


def test_sequential_generator_is_predictable():
    gen = SequentialIdentifierGenerator(prefix="t")
    assert [gen.new_id() for _ in range(3)] == ["t-1", "t-2", "t-3"]
