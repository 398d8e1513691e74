# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - auth.py: API key authentication (GET /v1/api/auth)
#   - tokens.py: Token issue, listing, update and revocation
#   - health.py: Liveness and database health check
#   - deps.py: Shared dependencies (codec, service, tenants, bearer key)
#   - request_logging.py: Per-request logging middleware
# =============================================================================
