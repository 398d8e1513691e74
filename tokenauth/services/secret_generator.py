"""Random token secrets drawn from the lowercase base-32-hex alphabet."""

from __future__ import annotations

import secrets

ALPHABET = "0123456789abcdefghijklmnopqrstuv"

SECRET_BITS = 130
SECRET_MIN_LENGTH = 20
SECRET_MAX_LENGTH = 26  # ceil(130 / 5)


def _to_base32hex(value: int) -> str:
    """Render a non-negative integer in base 32, most significant digit first."""
    if value == 0:
        return ALPHABET[0]
    digits = []
    while value:
        value, remainder = divmod(value, 32)
        digits.append(ALPHABET[remainder])
    return "".join(reversed(digits))


def new_secret() -> str:
    """
    Generate a new token secret.

    A 130-bit CSPRNG value is rendered in base 32 without leading zeros, so
    the natural length is at most 26 characters. Values that render shorter
    than SECRET_MIN_LENGTH are redrawn (probability < 2^-30 per draw), which
    keeps every secret inside the length window the codec accepts.

    Two calls returning the same secret is a birthday-bound event over
    2^130 values, not something this function guarantees.
    """
    while True:
        secret = _to_base32hex(secrets.randbits(SECRET_BITS))
        if len(secret) >= SECRET_MIN_LENGTH:
            return secret
