# =============================================================================
# Auth API — API Key Authentication Endpoint
# =============================================================================
#
# GET /v1/api/auth is called by the public API gateway for every request it
# receives. It resolves the Bearer key to the tenant the key is scoped to.
#
# FLOW:
#   1. Extract the key from 'Authorization: Bearer <key>'
#   2. Verify the integrity code and hash the secret (worker thread)
#   3. Look up the active record and touch last_used
#   4. Return the tenant scope, link and payment type
#
# Revoked keys get AUTH_TOKEN_REVOKED (with the token link); everything
# else that fails gets AUTH_TOKEN_INVALID. Both are 401.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from tokenauth.api.deps import get_bearer_key, get_token_service
from tokenauth.models.responses import AuthResponse, ErrorResponse
from tokenauth.services.token_service import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.get(
    "/v1/api/auth",
    response_model=AuthResponse,
    summary="Authenticate an API key",
    responses={401: {"model": ErrorResponse}},
)
async def authenticate(
    api_key: str = Depends(get_bearer_key),
    service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Return the tenant scope the presented API key authorizes."""
    entity = await service.authenticate_or_raise(api_key)
    return AuthResponse.from_entity(entity)
