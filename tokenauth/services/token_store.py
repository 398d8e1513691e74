# =============================================================================
# Token Store — Async Data Access for the tokens Table
# =============================================================================
#
# All reads and writes of token records go through this class. It works on
# one AsyncSession and never commits: the caller (TokenService) owns the
# transaction boundary. The one exception is the last-used touch, which
# rolls back on its own failure so the authentication hit survives.
#
# DESIGN DECISION: Every mutation is a single conditional UPDATE guarded by
# `revoked IS NULL`. Two concurrent revocations of the same token are
# serialized by the database; exactly one matches the guard and gets a
# timestamp back from RETURNING, the other matches zero rows.
#
# Tenant scoping is applied in the WHERE clause of every scoped statement,
# so a token belonging to one tenant is never visible to, updated by or
# revoked by another.
#
# Timestamps are taken from the application clock in UTC. Drivers that hand
# back naive datetimes (SQLite) are normalized to UTC on the way out.
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, and_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokenauth.db.models import TokenRecord
from tokenauth.exceptions import TokenStorageError
from tokenauth.models.tokens import (
    AccountTenant,
    NewToken,
    Tenant,
    TokenEntity,
    TokenHash,
    TokenIdentifier,
    TokenLink,
    TokenSource,
    TokenState,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _select_records():
    # Conditional UPDATEs bypass the identity map, so reads always refresh
    # rows the session already holds.
    return select(TokenRecord).execution_options(populate_existing=True)


def _scope_clause(tenant: Tenant) -> ColumnElement[bool]:
    """WHERE fragment restricting a statement to one tenant."""
    if isinstance(tenant, AccountTenant):
        return TokenRecord.account_id == tenant.account_id
    return and_(
        TokenRecord.service_external_id == tenant.service_external_id,
        TokenRecord.service_mode == tenant.service_mode,
    )


def _identifier_clause(identifier: TokenIdentifier) -> ColumnElement[bool]:
    if isinstance(identifier, TokenLink):
        return TokenRecord.token_link == identifier.value
    return TokenRecord.token_hash == identifier.value


def _to_entity(record: TokenRecord) -> TokenEntity:
    return TokenEntity(
        token_link=TokenLink(record.token_link),
        description=record.description,
        account_id=record.account_id,
        service_external_id=record.service_external_id,
        service_mode=record.service_mode,
        token_type=record.token_type,
        source=record.source,
        created_by=record.created_by,
        issued=_as_utc(record.issued),
        last_used=_as_utc(record.last_used),
        revoked=_as_utc(record.revoked),
    )


class TokenStore:
    """Persistence operations over token records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def find_active_by_hash(self, token_hash: TokenHash) -> TokenEntity | None:
        """
        Find the active token with this storage hash and mark it as used.

        The lookup and the last_used write are one conditional UPDATE, so a
        token revoked concurrently is either touched before the revocation
        or not matched at all.

        A failure to write last_used is logged and rolled back; the active
        record is then read without the touch and still returned.
        """
        stmt = (
            update(TokenRecord)
            .where(
                TokenRecord.token_hash == token_hash.value,
                TokenRecord.revoked.is_(None),
            )
            .values(last_used=utcnow())
            .returning(TokenRecord.token_id)
            .execution_options(synchronize_session=False)
        )
        try:
            token_id = (await self.session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning("Could not update last_used on authentication: %s", e)
            await self.session.rollback()
            return await self._find_active_untouched(token_hash)

        if token_id is None:
            return None
        record = (
            await self.session.execute(
                _select_records().where(TokenRecord.token_id == token_id)
            )
        ).scalar_one()
        return _to_entity(record)

    async def _find_active_untouched(self, token_hash: TokenHash) -> TokenEntity | None:
        stmt = _select_records().where(
            TokenRecord.token_hash == token_hash.value,
            TokenRecord.revoked.is_(None),
        )
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return _to_entity(record) if record else None

    async def find_by_hash(self, token_hash: TokenHash) -> TokenEntity | None:
        """Find a token by storage hash in any state. No side effects."""
        stmt = _select_records().where(TokenRecord.token_hash == token_hash.value)
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return _to_entity(record) if record else None

    async def find_by_link(
        self, link: TokenLink, tenant: Tenant | None = None,
    ) -> TokenEntity | None:
        """Find a token by link, optionally restricted to a tenant."""
        stmt = _select_records().where(TokenRecord.token_link == link.value)
        if tenant is not None:
            stmt = stmt.where(_scope_clause(tenant))
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return _to_entity(record) if record else None

    async def list_by_tenant(
        self,
        tenant: Tenant,
        state: TokenState = TokenState.ACTIVE,
        source: TokenSource = TokenSource.API,
    ) -> list[TokenEntity]:
        """Tokens of one tenant, newest first (ties broken by link)."""
        revoked_filter = (
            TokenRecord.revoked.is_(None)
            if state == TokenState.ACTIVE
            else TokenRecord.revoked.is_not(None)
        )
        stmt = (
            _select_records()
            .where(_scope_clause(tenant), revoked_filter, TokenRecord.source == source)
            .order_by(TokenRecord.issued.desc(), TokenRecord.token_link.asc())
        )
        result = await self.session.execute(stmt)
        return [_to_entity(r) for r in result.scalars().all()]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def insert(self, token_hash: TokenHash, new_token: NewToken) -> TokenEntity:
        """
        Persist a newly issued token.

        Raises:
            TokenStorageError: the hash or link collides with an existing row.
        """
        record = TokenRecord(
            token_hash=token_hash.value,
            token_link=new_token.token_link.value,
            account_id=new_token.account_id,
            service_external_id=new_token.service_external_id,
            service_mode=new_token.service_mode,
            description=new_token.description,
            token_type=new_token.token_type,
            source=new_token.source,
            created_by=new_token.created_by,
            issued=utcnow(),
        )
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.error("Token insert failed for %s: unique constraint", new_token.scope)
            raise TokenStorageError(
                f"Could not store token for {new_token.scope}"
            ) from e
        return _to_entity(record)

    async def update_description(
        self, link: TokenLink, description: str, tenant: Tenant | None = None,
    ) -> bool:
        """Set the description of an active token. False if none matched."""
        stmt = update(TokenRecord).where(
            TokenRecord.token_link == link.value,
            TokenRecord.revoked.is_(None),
        )
        if tenant is not None:
            stmt = stmt.where(_scope_clause(tenant))
        stmt = stmt.values(description=description).execution_options(
            synchronize_session=False,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def revoke(self, tenant: Tenant, identifier: TokenIdentifier) -> datetime | None:
        """
        Revoke one active token of a tenant.

        Returns the revocation timestamp, or None when no active token
        matched (absent, other tenant, or already revoked).
        """
        stmt = (
            update(TokenRecord)
            .where(
                _scope_clause(tenant),
                _identifier_clause(identifier),
                TokenRecord.revoked.is_(None),
            )
            .values(revoked=utcnow())
            .returning(TokenRecord.revoked)
            .execution_options(synchronize_session=False)
        )
        revoked = (await self.session.execute(stmt)).scalar_one_or_none()
        return _as_utc(revoked)

    async def revoke_all(self, tenant: Tenant) -> int:
        """Revoke every active token of a tenant. Returns how many changed."""
        stmt = (
            update(TokenRecord)
            .where(_scope_clause(tenant), TokenRecord.revoked.is_(None))
            .values(revoked=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
