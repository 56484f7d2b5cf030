"""
Wallet exchange models and exceptions.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


AUTH_METHOD_WALLET = "wallet"

# Opaque bearer credential returned by a TokenMinter
SessionToken = str


class ExchangeError(Exception):
    """Base error for the credential exchange.

    ``code`` is the stable value of the ``error`` field in JSON error bodies.
    ``details`` must never carry secrets or full tokens.
    """

    status_code: int = 500

    def __init__(self, message: str = "", details: Optional[str] = None):
        super().__init__(message or self.code)
        self.details = details

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ExchangeError):
    """Inbound request is missing data or is malformed."""
    status_code = 400


class MissingField(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"Missing {field}", details=f"{field} is required")
        self.field = field


class MalformedWalletAddress(ValidationError):
    pass


class MalformedSignature(ValidationError):
    pass


class MalformedRequest(ValidationError):
    pass


class VerificationError(ExchangeError):
    """Signature does not prove control of the wallet."""
    status_code = 401


class IdentityStoreError(ExchangeError):
    """Identity lookup or creation failed."""
    status_code = 500


class IdentityStoreUnavailable(IdentityStoreError):
    """Identity store could not be reached."""
    pass


class DuplicateIdentityError(IdentityStoreError):
    """Unique constraint on wallet_address rejected an insert.

    Raised by stores only; the resolver treats it as a concurrent create.
    """
    pass


class MintingError(ExchangeError):
    """Session token issuance failed."""
    status_code = 500


class MintingFailed(MintingError):
    pass


class InspectionError(ExchangeError):
    """Bearer token could not be decoded for inspection."""
    status_code = 400


class MalformedToken(InspectionError):
    pass


class UndecodableClaims(InspectionError):
    pass


class ExchangeRequest(BaseModel):
    """Validated wallet exchange request."""
    wallet_address: str
    signature: bytes
    message: str


class Identity(BaseModel):
    """Stable internal identity for a wallet address."""
    id: str
    wallet_address: str
    created_at: datetime


class SessionClaims(BaseModel):
    """Claims carried by a session token."""
    subject: str
    issued_at: int
    expires_at: int
    wallet_address: str
    auth_method: str = AUTH_METHOD_WALLET
    metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)


class ClaimsView(BaseModel):
    """Unverified view of a bearer token's claims, for debugging only."""
    claims: Dict[str, Any]
    subject: Optional[str] = None
    wallet_address: Optional[str] = None
    wallet_in_claims: bool = False
    wallet_in_user_metadata: bool = False
    wallet_in_app_metadata: bool = False
    issued_at: Optional[str] = None
    expires_at: Optional[str] = None
    expired: Optional[bool] = None
    token_prefix: str
    signature_verified: bool = False


class ExchangeResult(BaseModel):
    """Outcome of a successful exchange."""
    token: SessionToken
    identity: Identity
    strategy: str


class ExchangeUser(BaseModel):
    id: str
    wallet: str
    auth_type: str = AUTH_METHOD_WALLET


class ExchangeResponse(BaseModel):
    """Response body for a successful exchange."""
    token: str
    user: ExchangeUser
