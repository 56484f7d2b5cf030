"""
Session token minting strategies.

Both strategies issue a bearer credential for an already verified wallet and
resolved identity; callers choose one at construction time through
``build_token_minter``.
"""

import hashlib
import secrets
import time
from typing import Any, Callable, Dict, Optional, Protocol

import jwt
import structlog

from wallet_exchange.config import Settings, settings as default_settings
from wallet_exchange.providers.supabase_auth import (
    SupabaseAuthClient,
    SupabaseConflictError,
    SupabaseError,
)

from .models import (
    AUTH_METHOD_WALLET,
    Identity,
    MintingFailed,
    SessionClaims,
    SessionToken,
)


logger = structlog.stdlib.get_logger(__name__)

SESSION_TTL_SECONDS = 3600  # 1 hour
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"


class TokenMinter(Protocol):
    """Issues a session token for a verified wallet and its identity."""

    strategy: str

    async def mint(self, identity: Identity, wallet_address: str) -> SessionToken:
        ...


def wallet_user_metadata(identity: Identity, wallet_address: str) -> Dict[str, Any]:
    return {
        "wallet_address": wallet_address,
        "auth_type": AUTH_METHOD_WALLET,
        "identity_id": identity.id,
    }


def wallet_app_metadata(identity: Identity, wallet_address: str) -> Dict[str, Any]:
    return {
        "provider": "wallet",
        "providers": ["wallet"],
        "wallet_address": wallet_address,
        "auth_type": AUTH_METHOD_WALLET,
        "identity_id": identity.id,
    }


def build_session_claims(identity: Identity, wallet_address: str, issued_at: int) -> SessionClaims:
    """Build claims for a wallet session, refusing cross-wallet substitution."""
    if identity.wallet_address != wallet_address:
        raise MintingFailed(
            "Identity does not belong to the verified wallet",
            details="identity/wallet mismatch",
        )
    return SessionClaims(
        subject=identity.id,
        issued_at=issued_at,
        expires_at=issued_at + SESSION_TTL_SECONDS,
        wallet_address=wallet_address,
        auth_method=AUTH_METHOD_WALLET,
        metadata=wallet_user_metadata(identity, wallet_address),
        app_metadata=wallet_app_metadata(identity, wallet_address),
    )


class SelfIssuedTokenMinter:
    """Signs HS256 JWTs locally with the server-held secret."""

    strategy = "self_issued"

    def __init__(
        self,
        secret: str,
        issuer: str = "wallet-exchange",
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError(
                "SESSION_SIGNING_SECRET must be set for self-issued session tokens."
            )
        self._secret = secret
        self.issuer = issuer
        self._clock = clock

    async def mint(self, identity: Identity, wallet_address: str) -> SessionToken:
        claims = build_session_claims(identity, wallet_address, int(self._clock()))
        payload = {
            "iss": self.issuer,
            "aud": JWT_AUDIENCE,
            "role": JWT_AUDIENCE,
            "sub": claims.subject,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
            "wallet_address": claims.wallet_address,
            "auth_method": claims.auth_method,
            "user_metadata": claims.metadata,
            "app_metadata": claims.app_metadata,
        }
        try:
            token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise MintingFailed("Session token signing failed") from e

        logger.info(
            "session_token_minted",
            strategy=self.strategy,
            identity_id=identity.id,
            wallet=wallet_address,
            expires_at=claims.expires_at,
        )
        return token

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify and decode a token issued by this minter."""
        return jwt.decode(
            token,
            self._secret,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=self.issuer,
        )


def derive_principal_email(wallet_address: str, domain: str) -> str:
    """Deterministic, case-safe email handle for a wallet's provider principal."""
    digest = hashlib.sha256(wallet_address.encode("utf-8")).hexdigest()[:40]
    return f"wallet-{digest}@{domain}"


class ProviderDelegatedTokenMinter:
    """
    Obtains a session from Supabase Auth for a wallet-backed principal.

    Flow:
    1. Create the principal (confirmed email, wallet claims in metadata),
       reusing it when the email is already registered
    2. Generate a one-time magic link for the principal
    3. Repair metadata on a reused principal whose wallet claim is missing
    4. Verify the magic link token hash and return the access token
    """

    strategy = "provider_delegated"

    def __init__(self, client: SupabaseAuthClient, email_domain: str = "wallet.local"):
        self.client = client
        self.email_domain = email_domain

    async def mint(self, identity: Identity, wallet_address: str) -> SessionToken:
        # Shape check only; the provider stamps its own iat/exp
        build_session_claims(identity, wallet_address, int(time.time()))

        email = derive_principal_email(wallet_address, self.email_domain)
        user_metadata = wallet_user_metadata(identity, wallet_address)
        app_metadata = wallet_app_metadata(identity, wallet_address)

        try:
            created = await self._provision(email, user_metadata, app_metadata)
            link = await self.client.generate_magic_link(email)
            user = link["user"]
            if not created and not _metadata_matches(user, wallet_address):
                await self.client.update_user(
                    user["id"],
                    user_metadata={**(user.get("user_metadata") or {}), **user_metadata},
                    app_metadata={**(user.get("app_metadata") or {}), **app_metadata},
                )
                logger.info("provider_principal_repaired", wallet=wallet_address, principal_id=user["id"])
            session = await self.client.verify_magic_link(link["hashed_token"])
        except SupabaseError as e:
            logger.error(
                "provider_minting_failed",
                wallet=wallet_address,
                identity_id=identity.id,
                error=type(e).__name__,
            )
            raise MintingFailed("Provider session issuance failed", details=type(e).__name__) from e

        logger.info(
            "session_token_minted",
            strategy=self.strategy,
            identity_id=identity.id,
            wallet=wallet_address,
            principal_id=user["id"],
            principal_created=created,
        )
        return session["access_token"]

    async def _provision(
        self,
        email: str,
        user_metadata: Dict[str, Any],
        app_metadata: Dict[str, Any],
    ) -> bool:
        """Create the principal; returns False when it already existed."""
        try:
            await self.client.create_user(
                email=email,
                # Never used to sign in; sessions come from magic links only
                password=secrets.token_urlsafe(32),
                user_metadata=user_metadata,
                app_metadata=app_metadata,
            )
        except SupabaseConflictError:
            return False
        return True


def _metadata_matches(user: Dict[str, Any], wallet_address: str) -> bool:
    user_meta = user.get("user_metadata") or {}
    app_meta = user.get("app_metadata") or {}
    return (
        user_meta.get("wallet_address") == wallet_address
        and app_meta.get("wallet_address") == wallet_address
    )


def build_token_minter(
    config: Optional[Settings] = None,
    supabase_client: Optional[SupabaseAuthClient] = None,
) -> TokenMinter:
    """Select the minting strategy configured by ``token_strategy``."""
    config = config or default_settings
    if config.token_strategy == SelfIssuedTokenMinter.strategy:
        if not config.has_signing_secret:
            raise ValueError(
                "SESSION_SIGNING_SECRET must be set when TOKEN_STRATEGY=self_issued."
            )
        return SelfIssuedTokenMinter(
            secret=config.session_signing_secret.get_secret_value(),
            issuer=config.session_token_issuer,
        )
    if config.token_strategy == ProviderDelegatedTokenMinter.strategy:
        if supabase_client is None and not config.has_supabase_admin:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set "
                "when TOKEN_STRATEGY=provider_delegated."
            )
        client = supabase_client or SupabaseAuthClient(
            project_url=config.supabase_url,
            service_role_key=config.supabase_service_role_key.get_secret_value(),
            anon_key=config.supabase_anon_key.get_secret_value() or None,
            timeout=config.supabase_timeout_seconds,
        )
        return ProviderDelegatedTokenMinter(client, email_domain=config.wallet_email_domain)
    raise ValueError(f"Unknown token strategy: {config.token_strategy}")
