"""
Idempotent wallet-to-identity resolution.
"""

from typing import Optional, Protocol

import structlog

from .models import DuplicateIdentityError, Identity, IdentityStoreError


logger = structlog.stdlib.get_logger(__name__)


class IdentityStore(Protocol):
    """Persistent identities keyed by wallet address.

    ``create`` must raise DuplicateIdentityError when the store's uniqueness
    constraint on wallet_address rejects the insert, and
    IdentityStoreUnavailable when the store cannot be reached.
    """

    async def get_by_wallet(self, wallet_address: str) -> Optional[Identity]:
        ...

    async def create(self, wallet_address: str) -> Identity:
        ...


class IdentityResolver:
    """
    Maps a wallet address to exactly one Identity.

    Lookup-then-create. When two processes race to create the same identity,
    the loser's insert hits the store's unique constraint and the resolver
    reads back the winner's row. Store outages propagate unretried.
    """

    def __init__(self, store: IdentityStore):
        self.store = store

    async def resolve(self, wallet_address: str) -> Identity:
        existing = await self.store.get_by_wallet(wallet_address)
        if existing is not None:
            return existing

        try:
            identity = await self.store.create(wallet_address)
        except DuplicateIdentityError:
            winner = await self.store.get_by_wallet(wallet_address)
            if winner is None:
                raise IdentityStoreError(
                    "Identity conflict could not be resolved",
                    details="unique constraint fired but no identity was found",
                )
            logger.info("identity_conflict_resolved", wallet=wallet_address, identity_id=winner.id)
            return winner

        logger.info("identity_created", wallet=wallet_address, identity_id=identity.id)
        return identity
