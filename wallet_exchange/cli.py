#!/usr/bin/env python3
"""Simple CLI for exercising the wallet exchange locally"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import httpx
from nacl.signing import SigningKey

from wallet_exchange.auth.inspector import DiagnosticInspector
from wallet_exchange.auth.models import InspectionError
from wallet_exchange.auth.solana import base58_decode, base58_encode


def cli_keygen() -> int:
    """Generate an ed25519 keypair in Solana encoding"""
    signing_key = SigningKey.generate()
    secret = bytes(signing_key) + signing_key.verify_key.encode()
    print(f"Address:    {base58_encode(signing_key.verify_key.encode())}")
    print(f"Secret key: {base58_encode(secret)}")
    return 0


def _load_signing_key(secret_key: str) -> SigningKey:
    raw = base58_decode(secret_key)
    # Solana keypairs are 64 bytes: seed followed by public key
    if len(raw) == 64:
        raw = raw[:32]
    if len(raw) != 32:
        raise ValueError("Secret key must be a 32-byte seed or 64-byte keypair")
    return SigningKey(raw)


def cli_sign(secret_key: str, message: str) -> int:
    """Sign a message the way a wallet's signMessage does"""
    try:
        signing_key = _load_signing_key(secret_key)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    signature = signing_key.sign(message.encode("utf-8")).signature
    print(json.dumps({
        "wallet": base58_encode(signing_key.verify_key.encode()),
        "message": message,
        "signature": base58_encode(signature),
    }, indent=2))
    return 0


async def cli_exchange(base_url: str, secret_key: str, message: str) -> int:
    """Sign a message and exchange it for a session token"""
    try:
        signing_key = _load_signing_key(secret_key)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    wallet = base58_encode(signing_key.verify_key.encode())
    signature = base58_encode(signing_key.sign(message.encode("utf-8")).signature)
    print(f"🔐 Exchanging proof for {wallet}...")

    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        try:
            response = await client.post(
                "/auth/wallet",
                json={"wallet": wallet, "signature": signature, "message": message},
            )
        except httpx.RequestError as e:
            print(f"❌ Request failed: {e}", file=sys.stderr)
            return 1

    print(f"Status: {response.status_code}")
    print(json.dumps(response.json(), indent=2))
    return 0 if response.status_code == 200 else 1


def cli_inspect(token: str) -> int:
    """Decode a token's claims locally without verifying it"""
    inspector = DiagnosticInspector()
    try:
        view = inspector.inspect(token)
    except InspectionError as e:
        print(f"❌ {e.code}: {e}", file=sys.stderr)
        return 1
    print("⚠️  Signature NOT verified - for debugging only")
    print(json.dumps(view.model_dump(), indent=2))
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Wallet exchange CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("keygen", help="Generate a Solana-style ed25519 keypair")

    sign_parser = subparsers.add_parser("sign", help="Sign a message with a secret key")
    sign_parser.add_argument("secret_key", help="Base58 secret key or seed")
    sign_parser.add_argument("message", help="Message to sign")

    exchange_parser = subparsers.add_parser("exchange", help="Exchange a signed message for a token")
    exchange_parser.add_argument("secret_key", help="Base58 secret key or seed")
    exchange_parser.add_argument("message", help="Message to sign")
    exchange_parser.add_argument("--url", default="http://127.0.0.1:8000", help="Server base URL")

    inspect_parser = subparsers.add_parser("inspect", help="Decode a token's claims (unverified)")
    inspect_parser.add_argument("token", help="Bearer token")

    args = parser.parse_args(argv)

    if args.command == "keygen":
        return cli_keygen()
    if args.command == "sign":
        return cli_sign(args.secret_key, args.message)
    if args.command == "exchange":
        return asyncio.run(cli_exchange(args.url, args.secret_key, args.message))
    return cli_inspect(args.token)


if __name__ == "__main__":
    sys.exit(main())
