# =============================================================================
# Token Auth Service
# =============================================================================
# Issues, verifies and revokes bearer API tokens for a multi-tenant payments
# platform. The bearer string is never persisted: only a bcrypt hash of its
# random secret half is stored, and an HMAC integrity code lets malformed or
# foreign keys be rejected before any database round trip.
#
# Package structure:
#   tokenauth/
#   ├── api/          → FastAPI routers (authenticate, token admin, health)
#   │                    and request logging middleware
#   ├── db/           → Async engine, session management, ORM models
#   ├── models/       → Value types and Pydantic V2 request/response schemas
#   ├── services/     → Secret generator, token codec, token store, and the
#   │                    token service that composes them
#   ├── config.py     → pydantic-settings configuration
#   ├── exceptions.py → Domain errors mapped to HTTP responses
#   └── main.py       → FastAPI application factory
# =============================================================================
