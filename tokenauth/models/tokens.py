# =============================================================================
# Token Value Types
# =============================================================================
#
# Immutable identifiers and records passed between the codec, the store and
# the API layer. These are plain dataclasses and enums (not ORM objects), so
# a record read inside one session can be returned after that session closes.
#
# The tag enums keep the lenient parsing the public API has always had:
# an unknown or missing payment type / source / state string falls back to
# the default variant (CARD / API / ACTIVE) and logs an error, rather than
# rejecting the request. ServiceMode is strict because it is part of a
# tenant scope.
# =============================================================================

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


class _FallbackEnum(str, enum.Enum):
    """String enum whose from_string() falls back to a default member."""

    @classmethod
    def default(cls):
        raise NotImplementedError

    @classmethod
    def from_string(cls, value: str | None):
        if value:
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        logger.error("Unknown %s: %r", cls.__name__, value)
        return cls.default()


class TokenPaymentType(_FallbackEnum):
    """Payment instrument class the token is used for."""

    CARD = "CARD"
    DIRECT_DEBIT = "DIRECT_DEBIT"

    @classmethod
    def default(cls) -> TokenPaymentType:
        return cls.CARD


class TokenSource(_FallbackEnum):
    """Which subsystem created the token (stored in the `type` column)."""

    API = "API"
    PRODUCTS = "PRODUCTS"
    DEMO = "DEMO"

    @classmethod
    def default(cls) -> TokenSource:
        return cls.API


class TokenState(_FallbackEnum):
    """Listing filter: active (revoked IS NULL) or revoked."""

    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"

    @classmethod
    def default(cls) -> TokenState:
        return cls.ACTIVE


class ServiceMode(str, enum.Enum):
    """Mode half of a service tenant scope."""

    LIVE = "LIVE"
    TEST = "TEST"

    @classmethod
    def from_string(cls, value: str) -> ServiceMode:
        try:
            return cls[value.strip().upper()]
        except (AttributeError, KeyError):
            raise ValueError(f"Unknown service mode: {value!r}") from None


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenLink:
    """Public, caller-facing handle of a token record (UUID-shaped)."""

    value: str

    column_name = "token_link"

    @classmethod
    def new(cls) -> TokenLink:
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TokenHash:
    """
    Storage hash of a token secret.

    str() and repr() never render the value, so a hash cannot leak into
    logs or error messages by accident. Use `.value` explicitly.
    """

    value: str = field(repr=False)

    column_name = "token_hash"

    def __str__(self) -> str:
        return "token_hash"


TokenIdentifier = TokenLink | TokenHash


# ---------------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountTenant:
    """Flat account scope."""

    account_id: str

    def __str__(self) -> str:
        return f"account {self.account_id}"


@dataclass(frozen=True)
class ServiceTenant:
    """Service external id + mode scope."""

    service_external_id: str
    service_mode: ServiceMode

    def __str__(self) -> str:
        return f"service {self.service_external_id} ({self.service_mode.value})"


Tenant = AccountTenant | ServiceTenant


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NewToken:
    """Metadata for a token about to be issued."""

    description: str
    created_by: str
    account_id: str | None = None
    service_external_id: str | None = None
    service_mode: ServiceMode | None = None
    token_type: TokenPaymentType = TokenPaymentType.CARD
    source: TokenSource = TokenSource.API
    token_link: TokenLink = field(default_factory=TokenLink.new)

    def __post_init__(self):
        has_account = bool(self.account_id)
        has_service = bool(self.service_external_id) and self.service_mode is not None
        if not (has_account or has_service):
            raise ValueError(
                "A token needs an account_id or a service_external_id "
                "with a service_mode"
            )

    @property
    def scope(self) -> str:
        parts = []
        if self.account_id:
            parts.append(f"account {self.account_id}")
        if self.service_external_id:
            mode = self.service_mode.value if self.service_mode else "?"
            parts.append(f"service {self.service_external_id} ({mode})")
        return " / ".join(parts)


@dataclass(frozen=True)
class TokenEntity:
    """A token record as read from storage. Never carries the hash."""

    token_link: TokenLink
    description: str
    account_id: str | None
    service_external_id: str | None
    service_mode: ServiceMode | None
    token_type: TokenPaymentType
    source: TokenSource
    created_by: str
    issued: datetime | None
    last_used: datetime | None = None
    revoked: datetime | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked is not None

    @property
    def tenant(self) -> Tenant:
        """The scope this token authorizes. Account scope wins if both are set."""
        if self.account_id:
            return AccountTenant(self.account_id)
        return ServiceTenant(self.service_external_id, self.service_mode)


@dataclass(frozen=True)
class IssuedToken:
    """Codec output: storage hash plus the API key handed to the caller once."""

    token_hash: TokenHash
    api_key: str = field(repr=False)
