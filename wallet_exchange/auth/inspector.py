"""
Unverified bearer-token inspection for debugging claim propagation.

Nothing here checks the signature segment. A ClaimsView must never feed an
authorization decision.
"""

import base64
import binascii
import json
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .models import ClaimsView, MalformedToken, UndecodableClaims


TOKEN_PREFIX_LENGTH = 10


class DiagnosticInspector:
    """Decodes the claims segment of a JWT-shaped bearer token."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def inspect(self, bearer_token: str) -> ClaimsView:
        token = _strip_bearer(bearer_token)
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise MalformedToken("Token must have three dot-separated segments")

        claims = _decode_claims(segments[1])

        user_metadata = claims.get("user_metadata")
        app_metadata = claims.get("app_metadata")
        top_level = _wallet(claims)
        from_user = _wallet(user_metadata)
        from_app = _wallet(app_metadata)

        exp = _epoch(claims.get("exp"))
        return ClaimsView(
            claims=claims,
            subject=claims.get("sub") if isinstance(claims.get("sub"), str) else None,
            wallet_address=top_level or from_user or from_app,
            wallet_in_claims=bool(top_level),
            wallet_in_user_metadata=bool(from_user),
            wallet_in_app_metadata=bool(from_app),
            issued_at=_iso(_epoch(claims.get("iat"))),
            expires_at=_iso(exp),
            expired=(exp < self._clock()) if exp is not None else None,
            token_prefix=f"{token[:TOKEN_PREFIX_LENGTH]}...",
        )


def _strip_bearer(value: Any) -> str:
    if not isinstance(value, str):
        raise MalformedToken("Token must be a string")
    token = value.strip()
    if token[:7].lower() == "bearer ":
        token = token[7:].strip()
    return token


def _decode_claims(segment: str) -> Dict[str, Any]:
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        claims = json.loads(
            raw.decode("utf-8"),
            parse_constant=_reject_constant,
            parse_float=_finite_float,
        )
    except (binascii.Error, ValueError, UnicodeError) as e:
        raise UndecodableClaims("Claims segment is not base64url-encoded JSON") from e
    if not isinstance(claims, dict):
        raise UndecodableClaims("Claims segment is not a JSON object")
    return claims


# ClaimsView is rendered as strict JSON, so NaN and Infinity never get in
def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} in claims")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range in claims: {text}")
    return value


def _wallet(container: Any) -> Optional[str]:
    if not isinstance(container, dict):
        return None
    value = container.get("wallet_address")
    return value if isinstance(value, str) and value else None


def _epoch(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        epoch = float(value)
    except OverflowError:
        return None
    return epoch if math.isfinite(epoch) else None


def _iso(epoch: Optional[float]) -> Optional[str]:
    if epoch is None:
        return None
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None
