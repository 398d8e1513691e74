# =============================================================================
# Token Admin API — Issue, List, Update, Revoke
# =============================================================================
#
# Endpoints used by the self-service frontend to manage a tenant's tokens.
# A tenant is either an account (/{account_id}) or a service scope
# (/service/{service_external_id}/mode/{mode}); every list, lookup and
# revoke is restricted to the tenant in the path.
#
# DESIGN DECISION: The API key is only returned ONCE, by the create
# endpoint. Every other response identifies tokens by token_link.
#
# DESIGN DECISION: Revocation is a soft state change (revoked timestamp).
# Rows are never deleted, so a revoked key can still be reported as
# revoked rather than unknown.
#
# Not-found (or already revoked) maps to 404 here; the service layer
# returns None / 0 for those cases.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from tokenauth.api.deps import account_tenant, get_token_service, service_tenant
from tokenauth.models.requests import (
    CreateTokenRequest,
    RevokeTokenRequest,
    UpdateTokenDescriptionRequest,
)
from tokenauth.models.responses import (
    RevokedCountResponse,
    RevokedResponse,
    TokenCreatedResponse,
    TokenListResponse,
    TokenResponse,
)
from tokenauth.models.tokens import (
    AccountTenant,
    ServiceTenant,
    Tenant,
    TokenLink,
    TokenSource,
    TokenState,
)
from tokenauth.services.token_service import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/frontend/auth", tags=["Token Admin"])


# ---------------------------------------------------------------------------
# POST /v1/frontend/auth — Issue Token
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=TokenCreatedResponse,
    summary="Issue a new API key",
    description=(
        "Issue an API key for an account or a service scope. The key is "
        "only returned in this response; store it securely."
    ),
)
async def create_token(
    request: CreateTokenRequest,
    service: TokenService = Depends(get_token_service),
) -> TokenCreatedResponse:
    api_key, _ = await service.issue(request.to_new_token())
    return TokenCreatedResponse(token=api_key)


# ---------------------------------------------------------------------------
# PUT /v1/frontend/auth — Update Description
# ---------------------------------------------------------------------------


@router.put(
    "",
    response_model=TokenResponse,
    summary="Update a token's description",
)
async def update_token_description(
    request: UpdateTokenDescriptionRequest,
    service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Change the description of an active token. 404 if absent or revoked."""
    entity = await service.update_description(
        TokenLink(request.token_link), request.description,
    )
    if entity is None:
        raise HTTPException(
            status_code=404,
            detail=f"Active token with token_link {request.token_link} not found",
        )
    return TokenResponse.from_entity(entity)


# ---------------------------------------------------------------------------
# Shared handlers (account and service scopes route to these)
# ---------------------------------------------------------------------------


async def _list(
    service: TokenService, tenant: Tenant, state: str, type_: str,
) -> TokenListResponse:
    tokens = await service.list_tokens(
        tenant, TokenState.from_string(state), TokenSource.from_string(type_),
    )
    return TokenListResponse(tokens=[TokenResponse.from_entity(t) for t in tokens])


async def _get(service: TokenService, tenant: Tenant, token_link: str) -> TokenResponse:
    entity = await service.get_token(TokenLink(token_link), tenant)
    if entity is None:
        raise HTTPException(
            status_code=404,
            detail=f"Token with token_link {token_link} not found for {tenant}",
        )
    return TokenResponse.from_entity(entity)


async def _revoke(
    service: TokenService, tenant: Tenant, request: RevokeTokenRequest,
) -> RevokedResponse:
    if request.token_link:
        revoked = await service.revoke(tenant, link=TokenLink(request.token_link))
    elif request.token:
        revoked = await service.revoke(tenant, api_key=request.token)
    else:
        raise HTTPException(
            status_code=400, detail="token_link or token is required",
        )
    if revoked is None:
        raise HTTPException(
            status_code=404,
            detail=f"No active token to revoke for {tenant}",
        )
    return RevokedResponse(revoked=revoked)


# ---------------------------------------------------------------------------
# Service scope — /service/{service_external_id}/mode/{mode}
# ---------------------------------------------------------------------------
# Registered before the account routes so "service" is never read as an
# account id on the longer paths.


@router.get(
    "/service/{service_external_id}/mode/{mode}",
    response_model=TokenListResponse,
    summary="List a service's tokens",
)
async def list_service_tokens(
    state: str = Query(default="active", description="active or revoked"),
    type: str = Query(default="API", description="API, PRODUCTS or DEMO"),
    tenant: ServiceTenant = Depends(service_tenant),
    service: TokenService = Depends(get_token_service),
) -> TokenListResponse:
    return await _list(service, tenant, state, type)


@router.get(
    "/service/{service_external_id}/mode/{mode}/{token_link}",
    response_model=TokenResponse,
    summary="Get one of a service's tokens",
)
async def get_service_token(
    token_link: str,
    tenant: ServiceTenant = Depends(service_tenant),
    service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    return await _get(service, tenant, token_link)


@router.delete(
    "/service/{service_external_id}/mode/{mode}/all",
    response_model=RevokedCountResponse,
    summary="Revoke all of a service's tokens",
)
async def revoke_all_service_tokens(
    tenant: ServiceTenant = Depends(service_tenant),
    service: TokenService = Depends(get_token_service),
) -> RevokedCountResponse:
    return RevokedCountResponse(revoked_count=await service.revoke_all(tenant))


@router.delete(
    "/service/{service_external_id}/mode/{mode}",
    response_model=RevokedResponse,
    summary="Revoke one of a service's tokens",
)
async def revoke_service_token(
    request: RevokeTokenRequest,
    tenant: ServiceTenant = Depends(service_tenant),
    service: TokenService = Depends(get_token_service),
) -> RevokedResponse:
    return await _revoke(service, tenant, request)


# ---------------------------------------------------------------------------
# Account scope — /{account_id}
# ---------------------------------------------------------------------------


@router.get(
    "/{account_id}",
    response_model=TokenListResponse,
    summary="List an account's tokens",
)
async def list_account_tokens(
    state: str = Query(default="active", description="active or revoked"),
    type: str = Query(default="API", description="API, PRODUCTS or DEMO"),
    tenant: AccountTenant = Depends(account_tenant),
    service: TokenService = Depends(get_token_service),
) -> TokenListResponse:
    return await _list(service, tenant, state, type)


@router.delete(
    "/{account_id}/all",
    response_model=RevokedCountResponse,
    summary="Revoke all of an account's tokens",
)
async def revoke_all_account_tokens(
    tenant: AccountTenant = Depends(account_tenant),
    service: TokenService = Depends(get_token_service),
) -> RevokedCountResponse:
    return RevokedCountResponse(revoked_count=await service.revoke_all(tenant))


@router.get(
    "/{account_id}/{token_link}",
    response_model=TokenResponse,
    summary="Get one of an account's tokens",
)
async def get_account_token(
    token_link: str,
    tenant: AccountTenant = Depends(account_tenant),
    service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    return await _get(service, tenant, token_link)


@router.delete(
    "/{account_id}",
    response_model=RevokedResponse,
    summary="Revoke one of an account's tokens",
)
async def revoke_account_token(
    request: RevokeTokenRequest,
    tenant: AccountTenant = Depends(account_tenant),
    service: TokenService = Depends(get_token_service),
) -> RevokedResponse:
    return await _revoke(service, tenant, request)
