# =============================================================================
# API Dependencies — FastAPI Dependency Injection
# =============================================================================
#
# 1. get_token_codec()    — the process-wide codec built from settings
# 2. get_token_service()  — a TokenService bound to the request's session
# 3. get_bearer_key()     — the raw API key from the Authorization header
#
# DESIGN DECISION: HTTPBearer(auto_error=False) so a missing or non-Bearer
# header is reported as AUTH_TOKEN_INVALID (401) with the same body as any
# other bad key, not FastAPI's default 403.
#
# Tests replace get_async_session (and, if needed, get_token_codec) via
# app.dependency_overrides.
# =============================================================================

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Path
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tokenauth.config import get_settings
from tokenauth.db.engine import get_async_session
from tokenauth.exceptions import TokenInvalidError
from tokenauth.models.tokens import AccountTenant, ServiceMode, ServiceTenant
from tokenauth.services.token_codec import TokenCodec
from tokenauth.services.token_service import TokenService

# Security scheme for OpenAPI docs (shows "Authorize" button in Swagger UI)
_bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_token_codec() -> TokenCodec:
    """Create and cache the codec from the configured secrets."""
    return TokenCodec(get_settings().token_codec_config())


async def get_token_service(
    session: AsyncSession = Depends(get_async_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenService:
    return TokenService(session, codec)


async def get_bearer_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """
    Extract the API key from 'Authorization: Bearer <key>'.

    Raises:
        TokenInvalidError: header missing or not a Bearer credential.
    """
    if credentials is None or not credentials.credentials:
        raise TokenInvalidError()
    return credentials.credentials


def account_tenant(account_id: str = Path(..., max_length=255)) -> AccountTenant:
    return AccountTenant(account_id)


def service_tenant(
    service_external_id: str = Path(..., max_length=255),
    mode: str = Path(..., description="LIVE or TEST (case-insensitive)"),
) -> ServiceTenant:
    try:
        service_mode = ServiceMode.from_string(mode)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    return ServiceTenant(service_external_id, service_mode)
