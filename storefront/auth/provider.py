# storefront/auth/provider.py
from typing import Any, Dict, Optional

import httpx


class AuthProviderError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_rejection(self) -> bool:
        """True when the provider refused the credential rather than failing."""
        return self.status_code is not None and 400 <= self.status_code < 500


class GoTrueClient:
    """Minimal client for a Supabase (GoTrue) auth endpoint."""

    def __init__(self, url: str, anon_key: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/auth/v1",
            headers={"apikey": anon_key},
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, token: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise AuthProviderError(f"Auth provider unreachable: {exc}") from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error_description") or body.get("msg") or body.get("message") or response.reason_phrase
            raise AuthProviderError(message, response.status_code)

        if not response.content:
            return {}
        return response.json()

    async def get_user(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/user", token=token)

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    async def sign_out(self, token: str) -> None:
        await self._request("POST", "/logout", token=token)

    async def aclose(self) -> None:
        await self._client.aclose()
