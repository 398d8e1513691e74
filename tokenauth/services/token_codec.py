# =============================================================================
# Token Codec — API Key Construction, Verification and Storage Hashing
# =============================================================================
#
# An API key is a random secret followed by a 32-character integrity code:
#
#     api_key = secret + lower(base32hex(HMAC-SHA1(hmac_secret, secret)))
#
# The integrity code lets the service reject malformed or foreign keys with
# one HMAC and no database round trip. Only keys that pass are turned into
# a storage hash and looked up.
#
# The storage hash is bcrypt(secret, fixed_salt). The salt is shared by all
# tokens (a presented key has to map to exactly one hash for the lookup),
# so bcrypt here is a slow one-way function, not a per-record salted hash.
#
# Both secrets are wire format: changing either one invalidates every key
# already issued. Output is bit-compatible with keys issued by earlier
# versions of this service.
#
# bcrypt is CPU-bound (~tens of ms at cost 10). Async callers run issue()
# and verify_and_hash() in a worker thread (see token_service.py).
# =============================================================================

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import re
from dataclasses import dataclass, field

import bcrypt

from tokenauth.models.tokens import IssuedToken, TokenHash
from tokenauth.services.secret_generator import (
    SECRET_MAX_LENGTH,
    SECRET_MIN_LENGTH,
    new_secret,
)

logger = logging.getLogger(__name__)

INTEGRITY_CODE_LENGTH = 32
API_KEY_MIN_LENGTH = SECRET_MIN_LENGTH + INTEGRITY_CODE_LENGTH
API_KEY_MAX_LENGTH = SECRET_MAX_LENGTH + INTEGRITY_CODE_LENGTH

_BCRYPT_SALT_RE = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{22}$")


@dataclass(frozen=True)
class TokenCodecConfig:
    """Explicit codec configuration. Both values are secrets."""

    hmac_secret: str = field(repr=False)
    db_salt: str = field(repr=False)

    def __post_init__(self):
        if not self.hmac_secret:
            raise ValueError("API key HMAC secret must not be empty")
        if not _BCRYPT_SALT_RE.match(self.db_salt or ""):
            raise ValueError(
                "Token DB salt must be a bcrypt salt like '$2a$10$' "
                "followed by 22 characters"
            )


class TokenCodec:
    """Turns secrets into API keys and storage hashes, and back."""

    def __init__(self, config: TokenCodecConfig):
        self._hmac_key = config.hmac_secret.encode("utf-8")
        self._salt = config.db_salt.encode("ascii")

    def issue(self) -> IssuedToken:
        """Generate a new secret and return its storage hash and API key."""
        secret = new_secret()
        return IssuedToken(
            token_hash=self.hash_of(secret),
            api_key=secret + self._integrity_code(secret),
        )

    def verify_and_hash(self, api_key: str) -> TokenHash | None:
        """
        Verify a presented API key and return the storage hash of its secret.

        Returns None when the key is outside the length window, is not
        ASCII, or carries an integrity code that does not match its secret.
        The length check runs before any hashing.
        """
        if not API_KEY_MIN_LENGTH <= len(api_key) <= API_KEY_MAX_LENGTH:
            logger.info("Rejected API key: length %d outside window", len(api_key))
            return None
        if not api_key.isascii():
            logger.info("Rejected API key: non-ASCII characters")
            return None

        split_at = len(api_key) - INTEGRITY_CODE_LENGTH
        secret, presented_code = api_key[:split_at], api_key[split_at:]

        if not hmac.compare_digest(self._integrity_code(secret), presented_code):
            logger.info("Rejected API key: integrity code does not match")
            return None

        return self.hash_of(secret)

    def hash_of(self, secret: str) -> TokenHash:
        """One-way storage transform of a secret."""
        return TokenHash(bcrypt.hashpw(secret.encode("utf-8"), self._salt).decode("ascii"))

    def _integrity_code(self, secret: str) -> str:
        digest = hmac.new(self._hmac_key, secret.encode("utf-8"), hashlib.sha1).digest()
        return base64.b32hexencode(digest).decode("ascii").lower().rstrip("=")
