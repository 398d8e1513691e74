# =============================================================================
# Services Package — Token Issuance, Verification and Storage
# =============================================================================
#   - secret_generator.py: random base-32-hex token secrets
#   - token_codec.py: secret ⇄ API key (HMAC-SHA1) and storage hash (bcrypt)
#   - token_store.py: async data access over the tokens table
#   - token_service.py: boundary operations composing codec + store
# =============================================================================
