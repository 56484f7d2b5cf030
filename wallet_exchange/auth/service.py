"""
Wallet credential exchange service.
"""

from typing import Any, Optional

import structlog

from wallet_exchange.config import Settings, settings as default_settings
from wallet_exchange.db.database import create_engine, create_session_factory
from wallet_exchange.db.identity_store import SqlIdentityStore

from .inspector import DiagnosticInspector
from .minter import TokenMinter, build_token_minter
from .models import ClaimsView, ExchangeError, ExchangeResult, VerificationError
from .resolver import IdentityResolver
from .validation import validate
from .verifier import Ed25519SignatureVerifier, SignatureVerifier


logger = structlog.stdlib.get_logger(__name__)


class ExchangeService:
    """
    Exchanges a signed wallet proof for a session token.

    Flow:
    1. Validate the raw body (no side effects)
    2. Verify the signature over the message with the wallet's key
    3. Resolve (or create) the wallet's identity
    4. Mint a session token for that identity and wallet

    Each stage fails fast with a typed ExchangeError; nothing is retried.
    Collaborators are injected so stores, providers and verifiers can be
    swapped for fakes.
    """

    def __init__(
        self,
        verifier: SignatureVerifier,
        resolver: IdentityResolver,
        minter: TokenMinter,
        inspector: Optional[DiagnosticInspector] = None,
    ):
        self.verifier = verifier
        self.resolver = resolver
        self.minter = minter
        self.inspector = inspector or DiagnosticInspector()

    async def exchange(self, raw: Any) -> ExchangeResult:
        try:
            request = validate(raw)
        except ExchangeError as e:
            logger.info("wallet_exchange_rejected", stage="validate", error=e.code)
            raise

        wallet = request.wallet_address
        if not self.verifier.verify(wallet, request.message, request.signature):
            logger.info("wallet_exchange_rejected", stage="verify", wallet=wallet)
            raise VerificationError("Signature verification failed")

        try:
            identity = await self.resolver.resolve(wallet)
            token = await self.minter.mint(identity, wallet)
        except ExchangeError as e:
            logger.error("wallet_exchange_failed", wallet=wallet, error=e.code)
            raise

        logger.info(
            "wallet_exchange_completed",
            wallet=wallet,
            identity_id=identity.id,
            strategy=self.minter.strategy,
        )
        return ExchangeResult(token=token, identity=identity, strategy=self.minter.strategy)

    def inspect(self, bearer_token: str) -> ClaimsView:
        view = self.inspector.inspect(bearer_token)
        logger.info(
            "token_inspected",
            token_prefix=view.token_prefix,
            wallet_in_claims=view.wallet_in_claims,
            wallet_in_user_metadata=view.wallet_in_user_metadata,
            wallet_in_app_metadata=view.wallet_in_app_metadata,
        )
        return view


def build_exchange_service(
    config: Optional[Settings] = None,
    session_factory=None,
) -> ExchangeService:
    """Wire the default verifier, SQL identity store and configured minter."""
    config = config or default_settings
    if session_factory is None:
        session_factory = create_session_factory(create_engine(config.database_url))
    return ExchangeService(
        verifier=Ed25519SignatureVerifier(),
        resolver=IdentityResolver(SqlIdentityStore(session_factory)),
        minter=build_token_minter(config),
    )


# Singleton instance
_exchange_service: Optional[ExchangeService] = None


def get_exchange_service() -> ExchangeService:
    """Get the singleton exchange service instance."""
    global _exchange_service
    if _exchange_service is None:
        _exchange_service = build_exchange_service()
    return _exchange_service


def set_exchange_service(service: Optional[ExchangeService]) -> None:
    global _exchange_service
    _exchange_service = service
