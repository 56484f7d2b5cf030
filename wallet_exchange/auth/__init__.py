from .service import ExchangeService, build_exchange_service, get_exchange_service
from .models import (
    ClaimsView,
    ExchangeError,
    ExchangeRequest,
    ExchangeResult,
    Identity,
    IdentityStoreError,
    IdentityStoreUnavailable,
    InspectionError,
    MalformedToken,
    MalformedWalletAddress,
    MintingError,
    MintingFailed,
    MissingField,
    SessionClaims,
    UndecodableClaims,
    ValidationError,
    VerificationError,
)
from .inspector import DiagnosticInspector
from .minter import (
    ProviderDelegatedTokenMinter,
    SelfIssuedTokenMinter,
    TokenMinter,
    build_token_minter,
)
from .resolver import IdentityResolver, IdentityStore
from .validation import validate
from .verifier import Ed25519SignatureVerifier, SignatureVerifier

__all__ = [
    "ExchangeService",
    "build_exchange_service",
    "get_exchange_service",
    "ClaimsView",
    "ExchangeError",
    "ExchangeRequest",
    "ExchangeResult",
    "Identity",
    "IdentityStoreError",
    "IdentityStoreUnavailable",
    "InspectionError",
    "MalformedToken",
    "MalformedWalletAddress",
    "MintingError",
    "MintingFailed",
    "MissingField",
    "SessionClaims",
    "UndecodableClaims",
    "ValidationError",
    "VerificationError",
    "DiagnosticInspector",
    "ProviderDelegatedTokenMinter",
    "SelfIssuedTokenMinter",
    "TokenMinter",
    "build_token_minter",
    "IdentityResolver",
    "IdentityStore",
    "validate",
    "Ed25519SignatureVerifier",
    "SignatureVerifier",
]
