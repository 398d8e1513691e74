# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the admin API.
# FastAPI uses them for body validation (automatic 422 errors for invalid
# data) and OpenAPI documentation.
#
# token_type and type (the token source) keep the lenient parsing the API
# has always had: unknown values fall back to CARD / API and are logged,
# they do not fail the request. service_mode is strict.
# =============================================================================

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tokenauth.models.tokens import (
    NewToken,
    ServiceMode,
    TokenPaymentType,
    TokenSource,
)


class CreateTokenRequest(BaseModel):
    """
    Request body for POST /v1/frontend/auth — issue a new token.

    Either account_id or (service_external_id + service_mode) is required;
    both may be given.

    Example:
        {
            "account_id": "123",
            "description": "Invoice integration",
            "created_by": "admin@example.com",
            "token_type": "CARD"
        }
    """

    account_id: str | None = Field(default=None, max_length=255)
    service_external_id: str | None = Field(default=None, max_length=255)
    service_mode: ServiceMode | None = None

    description: str = Field(..., min_length=1, max_length=255)
    created_by: str = Field(..., min_length=1, max_length=255)

    token_type: TokenPaymentType = TokenPaymentType.CARD
    # Serialized as "type" on the wire
    source: TokenSource = Field(default=TokenSource.API, alias="type")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("token_type", mode="before")
    @classmethod
    def parse_token_type(cls, v):
        if isinstance(v, TokenPaymentType):
            return v
        return TokenPaymentType.from_string(v)

    @field_validator("source", mode="before")
    @classmethod
    def parse_source(cls, v):
        if isinstance(v, TokenSource):
            return v
        return TokenSource.from_string(v)

    @field_validator("service_mode", mode="before")
    @classmethod
    def parse_service_mode(cls, v):
        if v is None or isinstance(v, ServiceMode):
            return v
        return ServiceMode.from_string(v)

    @model_validator(mode="after")
    def require_scope(self) -> CreateTokenRequest:
        has_service = bool(self.service_external_id) and self.service_mode is not None
        if not (self.account_id or has_service):
            raise ValueError(
                "account_id or service_external_id with service_mode is required"
            )
        return self

    def to_new_token(self) -> NewToken:
        return NewToken(
            description=self.description,
            created_by=self.created_by,
            account_id=self.account_id,
            service_external_id=self.service_external_id,
            service_mode=self.service_mode,
            token_type=self.token_type,
            source=self.source,
        )


class UpdateTokenDescriptionRequest(BaseModel):
    """Request body for PUT /v1/frontend/auth."""

    token_link: str = Field(..., min_length=1, max_length=36)
    description: str = Field(..., min_length=1, max_length=255)


class RevokeTokenRequest(BaseModel):
    """
    Request body for DELETE /v1/frontend/auth/{scope}.

    Identifies the token by its link or by the full API key. If both are
    given, the link is used.
    """

    token_link: str | None = Field(default=None, max_length=36)
    token: str | None = Field(default=None, description="Full API key")
