"""
Solana address and signature encoding helpers.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Iterable


_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(_BASE58_ALPHABET)}

_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]+$")

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


def is_valid_solana_address(address: Any) -> bool:
    if not isinstance(address, str):
        return False
    return bool(_SOLANA_ADDRESS_RE.match(address))


def base58_decode(value: str) -> bytes:
    if not value:
        return b""
    num = 0
    for char in value:
        if char not in _BASE58_INDEX:
            raise ValueError("Invalid base58 character")
        num = num * 58 + _BASE58_INDEX[char]
    combined = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    pad = len(value) - len(value.lstrip("1"))
    return b"\x00" * pad + combined


def base58_encode(data: bytes) -> str:
    if not data:
        return ""
    num = int.from_bytes(data, "big")
    encoded = ""
    while num > 0:
        num, rem = divmod(num, 58)
        encoded = _BASE58_ALPHABET[rem] + encoded
    pad = 0
    for byte in data:
        if byte == 0:
            pad += 1
        else:
            break
    return "1" * pad + encoded


def decode_signature(signature: Any) -> bytes:
    """
    Decode a wallet signature into raw bytes.

    Wallet adapters hand signatures over in several shapes: base58 strings,
    base64 (standard or url-safe), 0x hex, or a serialized Uint8Array
    (a list of ints). Raises ValueError when none of them apply.
    """
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, list):
        return _decode_byte_list(signature)
    if not isinstance(signature, str):
        raise ValueError("Unsupported signature type")

    candidate = signature.strip()
    if not candidate:
        raise ValueError("Signature is empty")

    if candidate.startswith("0x") and _HEX_RE.match(candidate):
        return _decode_hex(candidate[2:])

    # 64 raw bytes encode to 86-88 base58 chars, and hex to 128 chars.
    # Prefer the interpretation that yields a full ed25519 signature.
    if _looks_base58(candidate):
        try:
            decoded = base58_decode(candidate)
        except ValueError:
            decoded = b""
        if len(decoded) == SIGNATURE_LENGTH:
            return decoded

    if len(candidate) == SIGNATURE_LENGTH * 2 and _HEX_RE.match(candidate):
        return _decode_hex(candidate)

    try:
        return base64.b64decode(candidate, validate=True)
    except (ValueError, binascii.Error):
        try:
            padded = candidate + "=" * (-len(candidate) % 4)
            return base64.urlsafe_b64decode(padded.encode("ascii"))
        except (ValueError, binascii.Error) as exc:
            raise ValueError("Unsupported signature encoding") from exc


def _decode_hex(value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError("Invalid hex signature") from exc


def _decode_byte_list(values: Iterable[Any]) -> bytes:
    out = bytearray()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ValueError("Signature array must contain byte values")
        out.append(value)
    if not out:
        raise ValueError("Signature is empty")
    return bytes(out)


def _looks_base58(value: str) -> bool:
    return all(char in _BASE58_INDEX for char in value)
