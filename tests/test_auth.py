import httpx
import pytest

from storefront.auth.provider import AuthProviderError, GoTrueClient
from storefront.auth.service import AuthService, AuthUser
from storefront.core.errors import AuthenticationError

from conftest import ADMIN_TOKEN, SELF_PROMOTED_TOKEN, USER_TOKEN, FakeIdentityProvider


@pytest.fixture
def auth():
    return AuthService(FakeIdentityProvider())


async def test_get_user_resolves_token(auth):
    user = await auth.get_user(ADMIN_TOKEN)

    assert user.email == "admin@example.com"
    assert auth.is_admin(user)


async def test_get_user_without_token(auth):
    assert await auth.get_user() is None


async def test_rejected_token_gives_no_user(auth):
    assert await auth.get_user("forged") is None


async def test_provider_outage_propagates():
    class Down(FakeIdentityProvider):
        async def get_user(self, token):
            raise AuthProviderError("Auth provider unreachable")

    with pytest.raises(AuthProviderError):
        await AuthService(Down()).get_user(USER_TOKEN)


async def test_admin_flag_comes_from_app_metadata_only(auth):
    assert not auth.is_admin(await auth.get_user(USER_TOKEN))
    assert not auth.is_admin(await auth.get_user(SELF_PROMOTED_TOKEN))
    assert not auth.is_admin(None)
    assert not auth.is_admin(AuthUser(id="u1", app_metadata={"is_admin": "true"}))


async def test_sign_in_and_out_emit_events(auth):
    events = []
    unsubscribe = auth.on_auth_state_change(lambda event, session: events.append(event))

    session = await auth.sign_in("admin@example.com", "correct-horse")
    assert (await auth.get_session()) is session
    assert (await auth.get_user()).id == session.user.id

    await auth.sign_out()
    assert await auth.get_session() is None
    assert auth.provider.signed_out == [ADMIN_TOKEN]

    unsubscribe()
    await auth.sign_in("admin@example.com", "correct-horse")
    assert events == ["SIGNED_IN", "SIGNED_OUT"]


async def test_sign_in_failure(auth):
    with pytest.raises(AuthenticationError) as excinfo:
        await auth.sign_in("admin@example.com", "nope")

    assert excinfo.value.message == "Invalid login credentials"
    assert await auth.get_session() is None


def _gotrue(handler):
    return GoTrueClient("http://auth.test/", "anon-key", transport=httpx.MockTransport(handler))


async def test_gotrue_get_user_sends_keys():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers["apikey"]
        seen["authorization"] = request.headers["authorization"]
        return httpx.Response(200, json={"id": "u1", "email": "a@example.com"})

    client = _gotrue(handler)
    user = await client.get_user("tok")
    await client.aclose()

    assert user["id"] == "u1"
    assert seen == {
        "url": "http://auth.test/auth/v1/user",
        "apikey": "anon-key",
        "authorization": "Bearer tok",
    }


async def test_gotrue_rejection_carries_status():
    def handler(request):
        return httpx.Response(401, json={"msg": "invalid JWT"})

    client = _gotrue(handler)
    with pytest.raises(AuthProviderError) as excinfo:
        await client.get_user("bad")
    await client.aclose()

    assert excinfo.value.status_code == 401
    assert excinfo.value.is_rejection
    assert excinfo.value.message == "invalid JWT"


async def test_gotrue_password_grant():
    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        return httpx.Response(200, json={"access_token": "t", "user": {"id": "u1"}})

    client = _gotrue(handler)
    data = await client.sign_in_with_password("a@example.com", "secret123")
    await client.aclose()

    assert data["access_token"] == "t"


async def test_gotrue_network_failure_is_not_a_rejection():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _gotrue(handler)
    with pytest.raises(AuthProviderError) as excinfo:
        await client.get_user("tok")
    await client.aclose()

    assert not excinfo.value.is_rejection
