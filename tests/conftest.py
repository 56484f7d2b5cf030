from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
import pytest_asyncio
from nacl.signing import SigningKey

from wallet_exchange.auth.minter import SelfIssuedTokenMinter
from wallet_exchange.auth.models import DuplicateIdentityError, Identity
from wallet_exchange.auth.resolver import IdentityResolver
from wallet_exchange.auth.service import ExchangeService
from wallet_exchange.auth.solana import base58_encode
from wallet_exchange.auth.verifier import Ed25519SignatureVerifier
from wallet_exchange.db.database import create_engine, create_session_factory, create_tables
from wallet_exchange.db.identity_store import SqlIdentityStore


TEST_SECRET = "test-signing-secret-0123456789abcdef"
FIXED_NOW = 1_760_000_000


class WalletKey:
    """Test wallet: an ed25519 keypair with Solana-encoded address."""

    def __init__(self, signing_key: Optional[SigningKey] = None):
        self.signing_key = signing_key or SigningKey.generate()
        self.address = base58_encode(self.signing_key.verify_key.encode())

    def sign(self, message: str) -> bytes:
        return self.signing_key.sign(message.encode("utf-8")).signature

    def sign_b58(self, message: str) -> str:
        return base58_encode(self.sign(message))

    def body(self, message: str = "login-nonce-123") -> Dict[str, str]:
        return {"wallet": self.address, "signature": self.sign_b58(message), "message": message}


class CountingVerifier:
    """Wraps a verifier and counts calls."""

    def __init__(self, inner=None):
        self.inner = inner or Ed25519SignatureVerifier()
        self.calls = 0

    def verify(self, wallet_address: str, message: str, signature: bytes) -> bool:
        self.calls += 1
        return self.inner.verify(wallet_address, message, signature)


class InMemoryIdentityStore:
    """Dict-backed store with a unique-wallet check and call counters."""

    def __init__(self):
        self.rows: Dict[str, Identity] = {}
        self.get_calls = 0
        self.create_calls = 0
        self._next_id = 0

    async def get_by_wallet(self, wallet_address: str) -> Optional[Identity]:
        self.get_calls += 1
        return self.rows.get(wallet_address)

    async def create(self, wallet_address: str) -> Identity:
        self.create_calls += 1
        if wallet_address in self.rows:
            raise DuplicateIdentityError("duplicate")
        self._next_id += 1
        identity = Identity(
            id=f"identity-{self._next_id}",
            wallet_address=wallet_address,
            created_at=datetime.now(timezone.utc),
        )
        self.rows[wallet_address] = identity
        return identity


class CountingMinter:
    """Wraps a minter and counts calls."""

    def __init__(self, inner):
        self.inner = inner
        self.strategy = inner.strategy
        self.calls = 0

    async def mint(self, identity: Identity, wallet_address: str) -> str:
        self.calls += 1
        return await self.inner.mint(identity, wallet_address)


@pytest.fixture
def wallet() -> WalletKey:
    return WalletKey()


@pytest.fixture
def make_wallet():
    return WalletKey


@pytest.fixture
def self_issued_minter() -> SelfIssuedTokenMinter:
    return SelfIssuedTokenMinter(secret=TEST_SECRET, issuer="wallet-exchange-test", clock=lambda: FIXED_NOW)


@pytest.fixture
def memory_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'identities.db'}")
    await create_tables(engine)
    yield SqlIdentityStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def counting_service(memory_store, self_issued_minter):
    """Exchange service over an in-memory store with counted stages."""
    verifier = CountingVerifier()
    minter = CountingMinter(self_issued_minter)
    service = ExchangeService(
        verifier=verifier,
        resolver=IdentityResolver(memory_store),
        minter=minter,
    )
    return service, verifier, memory_store, minter
