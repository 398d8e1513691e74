# =============================================================================
# Unit Tests — Secret Generator
# =============================================================================

from __future__ import annotations

from unittest.mock import patch

from tokenauth.services.secret_generator import (
    ALPHABET,
    SECRET_MAX_LENGTH,
    SECRET_MIN_LENGTH,
    _to_base32hex,
    new_secret,
)


class TestBase32Hex:
    def test_zero(self):
        assert _to_base32hex(0) == "0"

    def test_single_digits(self):
        assert _to_base32hex(9) == "9"
        assert _to_base32hex(10) == "a"
        assert _to_base32hex(31) == "v"

    def test_multi_digit_no_leading_zeros(self):
        assert _to_base32hex(32) == "10"
        assert _to_base32hex(32 * 32 + 1) == "101"

    def test_max_130_bit_value_is_26_digits(self):
        assert len(_to_base32hex(2**130 - 1)) == 26


class TestNewSecret:
    def test_length_within_window(self):
        for _ in range(200):
            assert SECRET_MIN_LENGTH <= len(new_secret()) <= SECRET_MAX_LENGTH

    def test_alphabet(self):
        for _ in range(50):
            assert set(new_secret()) <= set(ALPHABET)

    def test_secrets_differ(self):
        assert len({new_secret() for _ in range(100)}) == 100

    def test_short_draw_is_redrawn(self):
        """A value rendering under the minimum length is discarded."""
        with patch(
            "tokenauth.services.secret_generator.secrets.randbits",
            side_effect=[5, 2**129],
        ) as randbits:
            secret = new_secret()
        assert randbits.call_count == 2
        assert secret == _to_base32hex(2**129)
