# =============================================================================
# Models Package — Value Types and Pydantic V2 Schemas
# =============================================================================
#   - tokens.py: immutable value types shared by codec, store and API
#     (TokenLink, TokenHash, tenants, TokenEntity, tag enums)
#   - requests.py / responses.py: the HTTP contract
#
# These are SEPARATE from the ORM model (tokenauth/db/models.py): nothing
# outside the store touches ORM rows, and no schema exposes the token hash.
# =============================================================================
