# =============================================================================
# Domain Exceptions
# =============================================================================
#
# Error taxonomy for token operations:
#
#   TokenInvalidError  → malformed key, bad integrity code, or no record
#                        (401, AUTH_TOKEN_INVALID)
#   TokenRevokedError  → well-formed key whose record has been revoked
#                        (401, AUTH_TOKEN_REVOKED)
#   TokenStorageError  → insert failed (hash or link collision); fatal and
#                        never retried (500)
#
# "Not found" on administrative operations (update/revoke by link) is NOT
# an exception: the store and service return None/False/0 and the HTTP
# layer maps that to 404.
#
# Handlers in tokenauth.main turn these into JSON responses.
# =============================================================================

from __future__ import annotations

from enum import Enum

from tokenauth.models.tokens import TokenLink


class ErrorIdentifier(str, Enum):
    """Machine-readable error identifiers returned in error bodies."""

    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_REVOKED = "AUTH_TOKEN_REVOKED"
    GENERIC = "GENERIC"


class TokenServiceError(Exception):
    """Base class for token service errors."""

    status_code = 500
    error_identifier = ErrorIdentifier.GENERIC

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "error_identifier": self.error_identifier.value,
        }


class TokenInvalidError(TokenServiceError):
    """The presented API key is malformed, forged, or unknown."""

    status_code = 401
    error_identifier = ErrorIdentifier.AUTH_TOKEN_INVALID

    def __init__(self, message: str = "Token invalid!"):
        super().__init__(message)


class TokenRevokedError(TokenServiceError):
    """The presented API key is valid but its record has been revoked."""

    status_code = 401
    error_identifier = ErrorIdentifier.AUTH_TOKEN_REVOKED

    def __init__(self, token_link: TokenLink):
        self.token_link = token_link
        super().__init__(f"Token with token_link {token_link} has been revoked")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["token_link"] = str(self.token_link)
        return body


class TokenStorageError(TokenServiceError):
    """A new token record could not be stored."""

    status_code = 500
