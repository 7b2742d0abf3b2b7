"""Tests for referral code generation."""

import random

from rewardledger.services.referral.code_generator import (
    CODE_ALPHABET,
    generate_referral_code,
    username_prefix,
)


class TestReferralCodes:
    """Test referral code format."""

    def test_prefix_from_username(self):
        assert username_prefix("alice.smith") == "ALIC"

    def test_short_username_padded(self):
        assert username_prefix("al") == "ALXX"

    def test_symbols_only_username(self):
        assert username_prefix("__") == "XXXX"

    def test_code_format(self):
        code = generate_referral_code("bob_builder", random.Random(7))
        assert len(code) == 8
        assert code.startswith("BOBB")
        assert all(ch in CODE_ALPHABET for ch in code)

    def test_seeded_rng_is_deterministic(self):
        first = generate_referral_code("carol", random.Random(1))
        second = generate_referral_code("carol", random.Random(1))
        assert first == second
