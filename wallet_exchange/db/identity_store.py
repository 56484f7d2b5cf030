"""
SQLAlchemy-backed identity store.

Uniqueness of wallet addresses is enforced by the database constraint on
``wallet_identities.wallet_address``; this module only translates driver
errors into the exchange's identity-store errors.
"""

import asyncio
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from wallet_exchange.auth.models import (
    DuplicateIdentityError,
    Identity,
    IdentityStoreError,
    IdentityStoreUnavailable,
)

from .models import IdentityRecord


_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)


def _to_identity(record: IdentityRecord) -> Identity:
    return Identity(
        id=record.id,
        wallet_address=record.wallet_address,
        created_at=record.created_at,
    )


def _is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, _UNAVAILABLE_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class SqlIdentityStore:
    """Identity store over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_by_wallet(self, wallet_address: str) -> Optional[Identity]:
        try:
            async with self.session_factory() as session:
                record = await session.scalar(
                    select(IdentityRecord).where(IdentityRecord.wallet_address == wallet_address)
                )
        except SQLAlchemyError as e:
            raise self._translate(e, "Identity lookup failed") from e
        except _UNAVAILABLE_ERRORS as e:
            raise IdentityStoreUnavailable("Identity store unreachable") from e
        return _to_identity(record) if record else None

    async def create(self, wallet_address: str) -> Identity:
        try:
            async with self.session_factory() as session:
                record = IdentityRecord(wallet_address=wallet_address)
                session.add(record)
                await session.commit()
        except IntegrityError as e:
            raise DuplicateIdentityError("Identity already exists for wallet") from e
        except SQLAlchemyError as e:
            raise self._translate(e, "Identity creation failed") from e
        except _UNAVAILABLE_ERRORS as e:
            raise IdentityStoreUnavailable("Identity store unreachable") from e
        return _to_identity(record)

    async def ping(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, *_UNAVAILABLE_ERRORS):
            return False

    def _translate(self, exc: SQLAlchemyError, message: str) -> IdentityStoreError:
        if _is_connection_error(exc):
            return IdentityStoreUnavailable("Identity store unreachable")
        return IdentityStoreError(message)
