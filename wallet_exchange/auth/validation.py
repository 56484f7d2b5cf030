"""
Structural validation of inbound wallet exchange requests.
"""

from typing import Any, Mapping, Optional, Sequence

from .models import (
    ExchangeRequest,
    MalformedRequest,
    MalformedSignature,
    MalformedWalletAddress,
    MissingField,
)
from .solana import decode_signature, is_valid_solana_address


_WALLET_KEYS = ("wallet", "walletAddress", "wallet_address")
_SIGNATURE_KEYS = ("signature",)
_MESSAGE_KEYS = ("message",)


def validate(raw: Any) -> ExchangeRequest:
    """
    Parse and structurally validate a raw exchange body.

    Pure function of its input: no verification and no storage access happen
    here. Raises MissingField, MalformedWalletAddress, MalformedSignature or
    MalformedRequest.
    """
    if not isinstance(raw, Mapping):
        raise MalformedRequest("Request body must be a JSON object")

    wallet = _first_present(raw, _WALLET_KEYS)
    signature = _first_present(raw, _SIGNATURE_KEYS)
    message = _first_present(raw, _MESSAGE_KEYS)

    if _is_blank(wallet):
        raise MissingField("wallet")
    if _is_blank(signature):
        raise MissingField("signature")
    if _is_blank(message):
        raise MissingField("message")

    if not is_valid_solana_address(wallet):
        raise MalformedWalletAddress(
            "Invalid wallet address",
            details="wallet must be 32-44 base58 characters",
        )
    if not isinstance(message, str):
        raise MalformedRequest("message must be a string")

    try:
        signature_bytes = decode_signature(signature)
    except ValueError as exc:
        raise MalformedSignature("Invalid signature encoding", details=str(exc)) from exc
    if not signature_bytes:
        raise MalformedSignature("Invalid signature encoding", details="Signature is empty")

    return ExchangeRequest(
        wallet_address=wallet,
        signature=signature_bytes,
        message=message,
    )


def _first_present(raw: Mapping, keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, bytes, bytearray, dict)):
        return len(value) == 0
    return False
