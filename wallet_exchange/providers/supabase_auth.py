"""
Supabase Auth (GoTrue) client for provisioning wallet principals.

This client provides async methods for the admin and verify endpoints used
to obtain a provider-issued session for a wallet-backed principal via the
GoTrue HTTP API.
"""

from typing import Any, Dict, Optional

import httpx

from wallet_exchange.config import settings


class SupabaseError(Exception):
    """Base exception for Supabase Auth errors."""
    pass


class SupabaseAuthError(SupabaseError):
    """Service role key was rejected."""
    pass


class SupabaseRequestError(SupabaseError):
    """Request failed or returned an unexpected response."""
    pass


class SupabaseConflictError(SupabaseError):
    """Principal with the same email already exists."""
    pass


_CONFLICT_CODES = {"email_exists", "user_already_exists"}


class SupabaseAuthClient:
    """
    Async client for the Supabase Auth admin API.

    Example usage:
        client = SupabaseAuthClient(
            project_url="https://your-project.supabase.co",
            service_role_key="service-role-key",
        )

        user = await client.create_user(email="...", user_metadata={...})
        link = await client.generate_magic_link(email="...")
        session = await client.verify_magic_link(link["hashed_token"])
    """

    def __init__(
        self,
        project_url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.project_url = project_url or settings.supabase_url
        self.service_role_key = service_role_key or settings.supabase_service_role_key.get_secret_value()
        self.anon_key = anon_key or settings.supabase_anon_key.get_secret_value() or self.service_role_key
        self.timeout = timeout or settings.supabase_timeout_seconds
        self._transport = transport

        if not self.project_url:
            raise SupabaseError("SUPABASE_URL is required")
        if not self.service_role_key:
            raise SupabaseError("SUPABASE_SERVICE_ROLE_KEY is required")

        self.project_url = self.project_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def admin_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
        }

    @property
    def public_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.anon_key,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.project_url}/auth/v1",
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        admin: bool = True,
    ) -> Dict[str, Any]:
        client = await self._get_client()
        headers = self.admin_headers if admin else self.public_headers

        try:
            response = await client.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            raise SupabaseRequestError(f"Request to {path} failed: {type(e).__name__}") from e

        if response.status_code in (401, 403):
            raise SupabaseAuthError("Service role key rejected")

        if response.status_code >= 400:
            body = _safe_json(response)
            error_code = str(body.get("error_code") or body.get("code") or "")
            message = str(body.get("msg") or body.get("message") or body.get("error_description") or "")
            if response.status_code in (409, 422) and (
                error_code in _CONFLICT_CODES or "already been registered" in message
            ):
                raise SupabaseConflictError(message or "Principal already exists")
            raise SupabaseRequestError(
                f"{method} {path} returned {response.status_code}: {message or error_code or 'no body'}"
            )

        data = _safe_json(response)
        if not data:
            raise SupabaseRequestError(f"{method} {path} returned an empty body")
        return data

    async def create_user(
        self,
        email: str,
        password: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        app_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create a confirmed user.

        Raises:
            SupabaseConflictError: If a user with this email already exists
        """
        return await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": user_metadata or {},
                "app_metadata": app_metadata or {},
            },
        )

    async def update_user(
        self,
        user_id: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        app_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if user_metadata is not None:
            payload["user_metadata"] = user_metadata
        if app_metadata is not None:
            payload["app_metadata"] = app_metadata
        return await self._request("PUT", f"/admin/users/{user_id}", json=payload)

    async def generate_magic_link(self, email: str) -> Dict[str, Any]:
        """
        Generate a one-time magic link for an existing user.

        Returns the user plus link properties. GoTrue returns these flattened
        while some gateways nest them under ``user``/``properties``; both
        shapes are normalized to ``{"user": ..., "hashed_token": ...}``.
        """
        data = await self._request(
            "POST",
            "/admin/generate_link",
            json={"type": "magiclink", "email": email},
        )
        properties = data.get("properties") or {}
        user = data.get("user") or data
        if not isinstance(user, dict) or not isinstance(properties, dict):
            raise SupabaseRequestError("generate_link response has an unexpected shape")
        hashed_token = properties.get("hashed_token") or data.get("hashed_token")
        if not hashed_token or not user.get("id"):
            raise SupabaseRequestError("generate_link response missing user id or hashed_token")
        return {"user": user, "hashed_token": hashed_token}

    async def verify_magic_link(self, hashed_token: str) -> Dict[str, Any]:
        """Exchange a magic-link token hash for a session."""
        session = await self._request(
            "POST",
            "/verify",
            json={"type": "magiclink", "token_hash": hashed_token},
            admin=False,
        )
        if not session.get("access_token"):
            raise SupabaseRequestError("verify response missing access_token")
        return session

    async def health_check(self) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get("/health", headers=self.public_headers)
        except httpx.RequestError:
            return {"status": "unavailable"}
        return {"status": "healthy" if response.status_code == 200 else "degraded"}


def _safe_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}

