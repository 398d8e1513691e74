# =============================================================================
# Health API — Liveness and Database Check
# =============================================================================
#
# GET /healthcheck answers 200 when the service can reach its database and
# 503 when it cannot. Load balancers use it to take unhealthy instances out
# of rotation.
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tokenauth.config import get_settings
from tokenauth.db.engine import get_async_session, ping_db
from tokenauth.models.responses import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/healthcheck",
    response_model=HealthResponse,
    summary="Service health",
    responses={503: {"model": HealthResponse}},
)
async def healthcheck(session: AsyncSession = Depends(get_async_session)):
    settings = get_settings()
    healthy = await ping_db(session)
    body = HealthResponse(
        status="ok" if healthy else "unavailable",
        version=settings.app_version,
        service=settings.app_name,
        database="ok" if healthy else "unreachable",
    )
    if not healthy:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
