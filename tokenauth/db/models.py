# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# SCHEMA OVERVIEW:
#
# ┌──────────────────────────────────────────────┐
# │  tokens                                      │
# ├──────────────────────────────────────────────┤
# │ token_id (PK)                                │
# │ token_hash          (unique, bcrypt string)  │
# │ token_link          (unique, UUID handle)    │
# │ account_id          ─┐ account scope         │
# │ service_external_id ─┤ service scope         │
# │ service_mode        ─┘ (LIVE / TEST)         │
# │ description                                  │
# │ token_type          (CARD / DIRECT_DEBIT)    │
# │ type                (API / PRODUCTS / DEMO)  │
# │ created_by                                   │
# │ issued / last_used / revoked  (UTC)          │
# └──────────────────────────────────────────────┘
#
# The secret and the API key are never stored. token_hash is the only
# server-side representation of the secret and the authentication lookup
# key. token_link is the public handle used by administrative operations.
#
# Rows are never deleted. `revoked` is set once, by a conditional UPDATE
# guarded on `revoked IS NULL` (see services/token_store.py).
# =============================================================================

from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tokenauth.models.tokens import ServiceMode, TokenPaymentType, TokenSource


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


class TokenRecord(Base):
    """
    A bearer token issued to a tenant.

    A record carries an account scope, a service scope (external id + mode),
    or both. Both schemes coexist for backward compatibility.
    """

    __tablename__ = "tokens"

    token_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )

    # bcrypt(secret, fixed salt), 60 characters
    token_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )

    # Public handle, UUID4 string
    token_link: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True,
    )

    account_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_external_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    service_mode: Mapped[ServiceMode | None] = mapped_column(
        Enum(ServiceMode, name="service_mode"), nullable=True,
    )

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    token_type: Mapped[TokenPaymentType] = mapped_column(
        Enum(TokenPaymentType, name="token_payment_type"),
        nullable=False,
        default=TokenPaymentType.CARD,
    )

    # Token source; the column has always been called "type"
    source: Mapped[TokenSource] = mapped_column(
        "type",
        Enum(TokenSource, name="token_source"),
        nullable=False,
        default=TokenSource.API,
    )

    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    issued: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Updated on each successful authentication
    last_used: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Set once; a non-null value is terminal
    revoked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    __table_args__ = (
        Index("idx_tokens_account_id", "account_id"),
        Index("idx_tokens_service", "service_external_id", "service_mode"),
    )

    def __repr__(self) -> str:
        return (
            f"<TokenRecord(token_link='{self.token_link}', "
            f"revoked={self.revoked is not None})>"
        )
