# =============================================================================
# Application Entry Point — FastAPI App Factory
# =============================================================================
#
# Run locally with:
#   uvicorn tokenauth.main:app --reload
#
# STARTUP:  configure logging → create the tokens table (optional)
# SHUTDOWN: dispose the engine's connection pool
#
# Domain errors (TokenServiceError subclasses) are turned into JSON bodies
# {message, error_identifier[, token_link]} with the error's status code.
# Anything else propagates to Starlette's 500 handler.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tokenauth.api import auth, health, tokens
from tokenauth.api.request_logging import RequestLoggingMiddleware
from tokenauth.config import get_settings
from tokenauth.db.engine import dispose_engine, init_db
from tokenauth.exceptions import TokenServiceError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.create_tables_on_startup:
        await init_db()
    logger.info("%s v%s started", settings.app_name, settings.app_version)
    yield
    await dispose_engine()
    logger.info("%s stopped", settings.app_name)


async def token_service_error_handler(
    request: Request, exc: TokenServiceError,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers,
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Issues, authenticates and revokes bearer API tokens scoped to "
            "an account or a service."
        ),
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(TokenServiceError, token_service_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(tokens.router)
    return app


app = create_app()
