# =============================================================================
# Token Service — Issue, Authenticate, Administer
# =============================================================================
#
# Composes the codec (pure, CPU-bound) with the store (async, I/O-bound):
#
#   issue:          codec.issue() → store.insert()         → commit
#   authenticate:   codec.verify_and_hash() → store.find_active_by_hash()
#   revoke:         [codec.verify_and_hash()] → store.revoke() → commit
#
# bcrypt takes tens of milliseconds per call, so codec calls run in a worker
# thread via asyncio.to_thread() and never block the event loop.
#
# Each operation commits its own mutations before returning. Read-only
# operations leave the transaction to the session dependency.
#
# API keys and hashes are never logged. Log lines identify tokens by link
# and tenants by their scope.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tokenauth.exceptions import TokenInvalidError, TokenRevokedError
from tokenauth.models.tokens import (
    NewToken,
    Tenant,
    TokenEntity,
    TokenHash,
    TokenIdentifier,
    TokenLink,
    TokenSource,
    TokenState,
)
from tokenauth.services.token_codec import TokenCodec
from tokenauth.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class TokenService:
    """Token lifecycle operations for one request (one session)."""

    def __init__(self, session: AsyncSession, codec: TokenCodec):
        self.session = session
        self.codec = codec
        self.store = TokenStore(session)

    async def _hash_of_key(self, api_key: str) -> TokenHash | None:
        return await asyncio.to_thread(self.codec.verify_and_hash, api_key)

    # -------------------------------------------------------------------------
    # Issue
    # -------------------------------------------------------------------------

    async def issue(self, new_token: NewToken) -> tuple[str, TokenEntity]:
        """
        Issue a token and return (api_key, stored record).

        The API key is returned exactly once and is not recoverable later.

        Raises:
            TokenStorageError: the generated hash or link already exists.
        """
        issued = await asyncio.to_thread(self.codec.issue)
        entity = await self.store.insert(issued.token_hash, new_token)
        await self.session.commit()
        logger.info(
            "Issued token %s for %s (type=%s, source=%s)",
            entity.token_link, new_token.scope,
            entity.token_type.value, entity.source.value,
        )
        return issued.api_key, entity

    # -------------------------------------------------------------------------
    # Authenticate
    # -------------------------------------------------------------------------

    async def authenticate(self, api_key: str) -> TokenEntity | None:
        """
        Resolve an API key to its active token record.

        Returns None for malformed, forged, unknown or revoked keys. A hit
        updates the token's last_used timestamp.
        """
        token_hash = await self._hash_of_key(api_key)
        if token_hash is None:
            return None
        entity = await self.store.find_active_by_hash(token_hash)
        if entity is not None:
            await self.session.commit()
        return entity

    async def authenticate_or_raise(self, api_key: str) -> TokenEntity:
        """
        Like authenticate(), but tells revoked keys apart from invalid ones.

        Raises:
            TokenInvalidError: malformed, forged or unknown key.
            TokenRevokedError: well-formed key whose record is revoked.
        """
        token_hash = await self._hash_of_key(api_key)
        if token_hash is None:
            raise TokenInvalidError()

        entity = await self.store.find_active_by_hash(token_hash)
        if entity is not None:
            await self.session.commit()
            return entity

        existing = await self.store.find_by_hash(token_hash)
        if existing is not None and existing.is_revoked:
            logger.info("Authentication with revoked token %s", existing.token_link)
            raise TokenRevokedError(existing.token_link)
        raise TokenInvalidError()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_tokens(
        self,
        tenant: Tenant,
        state: TokenState = TokenState.ACTIVE,
        source: TokenSource = TokenSource.API,
    ) -> list[TokenEntity]:
        return await self.store.list_by_tenant(tenant, state, source)

    async def get_token(
        self, link: TokenLink, tenant: Tenant | None = None,
    ) -> TokenEntity | None:
        return await self.store.find_by_link(link, tenant)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def update_description(
        self, link: TokenLink, description: str, tenant: Tenant | None = None,
    ) -> TokenEntity | None:
        """Change an active token's description. None if absent or revoked."""
        updated = await self.store.update_description(link, description, tenant)
        if not updated:
            return None
        await self.session.commit()
        logger.info("Updated description of token %s", link)
        return await self.store.find_by_link(link, tenant)

    async def revoke(
        self,
        tenant: Tenant,
        link: TokenLink | None = None,
        api_key: str | None = None,
    ) -> datetime | None:
        """
        Revoke one token of a tenant, identified by link or by API key.

        Returns the revocation timestamp, or None when nothing was revoked
        (unknown, other tenant, already revoked, or malformed key).
        """
        identifier: TokenIdentifier
        if link is not None:
            identifier = link
        elif api_key is not None:
            token_hash = await self._hash_of_key(api_key)
            if token_hash is None:
                return None
            identifier = token_hash
        else:
            raise ValueError("revoke() needs a token link or an API key")

        revoked = await self.store.revoke(tenant, identifier)
        await self.session.commit()
        if revoked is not None:
            logger.info("Revoked token by %s for %s", identifier.column_name, tenant)
        return revoked

    async def revoke_all(self, tenant: Tenant) -> int:
        """Revoke every active token of a tenant. Returns the count."""
        count = await self.store.revoke_all(tenant)
        await self.session.commit()
        logger.info("Revoked %d token(s) for %s", count, tenant)
        return count
