# storefront/auth/service.py
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from storefront.auth.provider import AuthProviderError
from storefront.core.errors import AuthenticationError


class IdentityProvider(Protocol):
    async def get_user(self, token: str) -> Dict[str, Any]: ...

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]: ...

    async def sign_out(self, token: str) -> None: ...


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: AuthUser


AuthStateListener = Callable[[str, Optional[AuthSession]], None]


class AuthService:
    """Session handling on top of the identity provider."""

    def __init__(self, provider: IdentityProvider, session: Optional[AuthSession] = None):
        self.provider = provider
        self._session = session
        self._listeners: List[AuthStateListener] = []

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            data = await self.provider.sign_in_with_password(email, password)
        except AuthProviderError as exc:
            raise AuthenticationError(exc.message) from exc

        self._session = AuthSession.model_validate(data)
        self._emit("SIGNED_IN", self._session)
        return self._session

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        token = access_token or (self._session.access_token if self._session else None)
        if token:
            try:
                await self.provider.sign_out(token)
            except AuthProviderError as exc:
                raise AuthenticationError(exc.message) from exc
        self._session = None
        self._emit("SIGNED_OUT", None)

    async def get_session(self) -> Optional[AuthSession]:
        return self._session

    async def get_user(self, access_token: Optional[str] = None) -> Optional[AuthUser]:
        """Resolve the user behind ``access_token`` (or the current session).

        Returns None when there is no token or the provider rejects it;
        provider outages propagate as ``AuthProviderError``.
        """
        token = access_token or (self._session.access_token if self._session else None)
        if not token:
            return None
        try:
            data = await self.provider.get_user(token)
        except AuthProviderError as exc:
            if exc.is_rejection:
                return None
            raise
        if not data or not data.get("id"):
            return None
        return AuthUser.model_validate(data)

    def is_admin(self, user: Optional[AuthUser]) -> bool:
        # user_metadata is editable by the user, so only app_metadata counts
        if user is None:
            return False
        return user.app_metadata.get("is_admin") is True

    def on_auth_state_change(self, callback: AuthStateListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe
