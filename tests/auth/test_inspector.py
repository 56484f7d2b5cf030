import base64
import json
from datetime import datetime, timezone

import jwt
import pytest

from wallet_exchange.auth.inspector import DiagnosticInspector
from wallet_exchange.auth.minter import ProviderDelegatedTokenMinter
from wallet_exchange.auth.models import Identity, MalformedToken, UndecodableClaims


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _identity(wallet_address: str) -> Identity:
    return Identity(id="identity-7", wallet_address=wallet_address, created_at=datetime.now(timezone.utc))


@pytest.mark.asyncio
async def test_inspect_self_issued_token_flags_all_slots(self_issued_minter, wallet):
    token = await self_issued_minter.mint(_identity(wallet.address), wallet.address)

    view = DiagnosticInspector(clock=lambda: 1_760_000_100).inspect(token)

    assert view.wallet_in_claims is True
    assert view.wallet_in_user_metadata is True
    assert view.wallet_in_app_metadata is True
    assert view.wallet_address == wallet.address
    assert view.subject == "identity-7"
    assert view.expires_at == "2025-10-09T09:53:20+00:00"
    assert view.expired is False
    assert view.signature_verified is False
    assert view.token_prefix == token[:10] + "..."
    assert view.claims["auth_method"] == "wallet"


@pytest.mark.asyncio
async def test_inspect_delegated_token_flags_metadata_slots_only(wallet):
    class Provider:
        async def create_user(self, email, password, user_metadata=None, app_metadata=None):
            self.user = {"id": "p-1", "user_metadata": user_metadata, "app_metadata": app_metadata}
            return self.user

        async def generate_magic_link(self, email):
            return {"user": self.user, "hashed_token": "h"}

        async def verify_magic_link(self, hashed_token):
            token = jwt.encode(
                {"sub": "p-1", "exp": 4_102_444_800, **{k: self.user[k] for k in ("user_metadata", "app_metadata")}},
                "provider-secret",
                algorithm="HS256",
            )
            return {"access_token": token}

    token = await ProviderDelegatedTokenMinter(Provider()).mint(_identity(wallet.address), wallet.address)

    view = DiagnosticInspector().inspect(token)

    assert view.wallet_in_claims is False
    assert view.wallet_in_user_metadata is True
    assert view.wallet_in_app_metadata is True
    assert view.wallet_address == wallet.address
    assert view.expired is False


def test_inspect_accepts_bearer_prefix_and_ignores_signature():
    header = _b64(json.dumps({"alg": "none"}).encode())
    token = f"{header}.{_b64(json.dumps({'sub': 'u'}).encode())}.not-a-real-signature"

    view = DiagnosticInspector().inspect(f"Bearer {token}")

    assert view.subject == "u"
    assert view.wallet_address is None
    assert view.expires_at is None
    assert view.expired is None
    assert not (view.wallet_in_claims or view.wallet_in_user_metadata or view.wallet_in_app_metadata)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "a..c", None])
def test_malformed_token(token):
    with pytest.raises(MalformedToken):
        DiagnosticInspector().inspect(token)


@pytest.mark.parametrize(
    "claims_segment",
    [
        "!!!!",
        _b64(b"not json"),
        _b64(b"[1, 2, 3]"),
        _b64(b"\xff\xfe"),
    ],
)
def test_undecodable_claims(claims_segment):
    with pytest.raises(UndecodableClaims):
        DiagnosticInspector().inspect(f"header.{claims_segment}.sig")


def test_non_string_wallet_claims_are_not_counted():
    token = f"h.{_b64(json.dumps({'wallet_address': 42, 'user_metadata': 'x'}).encode())}.s"

    view = DiagnosticInspector().inspect(token)

    assert view.wallet_in_claims is False
    assert view.wallet_in_user_metadata is False


@pytest.mark.parametrize(
    "claims_json",
    [
        b'{"exp": 1e999, "wallet_address": "x"}',
        b'{"iat": NaN}',
        b'{"exp": -Infinity}',
        b'{"user_metadata": {"score": Infinity}}',
    ],
)
def test_non_finite_numbers_are_undecodable(claims_json):
    with pytest.raises(UndecodableClaims):
        DiagnosticInspector().inspect(f"h.{_b64(claims_json)}.s")


def test_huge_integer_expiry_is_reported_without_a_date():
    token = f"h.{_b64(json.dumps({'exp': 10 ** 400}).encode())}.s"

    view = DiagnosticInspector().inspect(token)

    assert view.expires_at is None
    assert view.expired is None
