"""
Wallet signature verification.

Verifiers are synchronous, side-effect free checks. They never touch the
network or the identity store and they fail closed: anything other than a
clean successful verification is reported as ``False``.
"""

from typing import Protocol

import structlog
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .solana import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, base58_decode


logger = structlog.stdlib.get_logger(__name__)


class SignatureVerifier(Protocol):
    """Proves the caller controls the private key behind a wallet address."""

    def verify(self, wallet_address: str, message: str, signature: bytes) -> bool:
        ...


class Ed25519SignatureVerifier:
    """Verifies a Solana signMessage signature (detached ed25519 over UTF-8 bytes)."""

    def verify(self, wallet_address: str, message: str, signature: bytes) -> bool:
        try:
            public_key = base58_decode(wallet_address)
            if len(public_key) != PUBLIC_KEY_LENGTH:
                logger.info("signature_rejected", wallet=wallet_address, reason="public_key_length")
                return False
            if len(signature) != SIGNATURE_LENGTH:
                logger.info("signature_rejected", wallet=wallet_address, reason="signature_length")
                return False
            VerifyKey(public_key).verify(message.encode("utf-8"), bytes(signature))
            return True
        except BadSignatureError:
            logger.info("signature_rejected", wallet=wallet_address, reason="bad_signature")
            return False
        except Exception:
            logger.warning("signature_verification_error", wallet=wallet_address, exc_info=True)
            return False
