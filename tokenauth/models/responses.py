# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
#
# DESIGN DECISION: Separate response models from DB models and entities.
# The storage hash must never go over the wire, and the API key is only
# returned once, by the create endpoint. Response models make that explicit.
# =============================================================================

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from tokenauth.models.tokens import (
    ServiceMode,
    TokenEntity,
    TokenPaymentType,
    TokenSource,
)


class HealthResponse(BaseModel):
    """Response for GET /healthcheck."""

    status: str = "ok"
    version: str
    service: str
    database: str = "ok"


class TokenCreatedResponse(BaseModel):
    """Response for POST /v1/frontend/auth. The key is shown only here."""

    token: str = Field(description="API key; store it now, it cannot be shown again")


class TokenResponse(BaseModel):
    """Public view of a token record."""

    token_link: str
    description: str
    account_id: str | None = None
    service_external_id: str | None = None
    service_mode: ServiceMode | None = None
    token_type: TokenPaymentType
    type: TokenSource
    created_by: str
    issued_date: datetime | None = None
    last_used: datetime | None = None
    revoked: datetime | None = None

    @classmethod
    def from_entity(cls, entity: TokenEntity) -> TokenResponse:
        return cls(
            token_link=str(entity.token_link),
            description=entity.description,
            account_id=entity.account_id,
            service_external_id=entity.service_external_id,
            service_mode=entity.service_mode,
            token_type=entity.token_type,
            type=entity.source,
            created_by=entity.created_by,
            issued_date=entity.issued,
            last_used=entity.last_used,
            revoked=entity.revoked,
        )


class TokenListResponse(BaseModel):
    tokens: list[TokenResponse]


class AuthResponse(BaseModel):
    """Response for GET /v1/api/auth — what the presented key authorizes."""

    account_id: str | None = None
    service_external_id: str | None = None
    service_mode: ServiceMode | None = None
    token_link: str
    token_type: TokenPaymentType

    @classmethod
    def from_entity(cls, entity: TokenEntity) -> AuthResponse:
        return cls(
            account_id=entity.account_id,
            service_external_id=entity.service_external_id,
            service_mode=entity.service_mode,
            token_link=str(entity.token_link),
            token_type=entity.token_type,
        )


class RevokedResponse(BaseModel):
    revoked: datetime


class RevokedCountResponse(BaseModel):
    revoked_count: int


class ErrorResponse(BaseModel):
    """Error body for token service errors."""

    message: str
    error_identifier: str
    token_link: str | None = None
