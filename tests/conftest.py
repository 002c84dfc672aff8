import io
from decimal import Decimal
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SUPABASE_URL", "http://auth.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest

from storefront.auth.provider import AuthProviderError
from storefront.core.config import Settings
from storefront.core.logger import AppLogger
from storefront.core.rate_limit import RateLimiter
from storefront.db.base import Base, build_engine, build_session_factory, get_db
from storefront.db.models.brands import Brand
from storefront.db.models.categories import Category
from storefront.db.models.products import Product
from storefront.main import create_app


ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"
SELF_PROMOTED_TOKEN = "self-promoted-token"

ADMIN_HEADERS = {"Authorization": f"Bearer {ADMIN_TOKEN}"}
USER_HEADERS = {"Authorization": f"Bearer {USER_TOKEN}"}


class FakeIdentityProvider:
    def __init__(self):
        self.users = {
            ADMIN_TOKEN: {
                "id": "0b9a3c1e-4f6d-4c2b-9a7e-1d2c3b4a5f60",
                "email": "admin@example.com",
                "app_metadata": {"is_admin": True},
                "user_metadata": {},
            },
            USER_TOKEN: {
                "id": "5e1f2a3b-6c7d-4e8f-9a0b-1c2d3e4f5a6b",
                "email": "shopper@example.com",
                "app_metadata": {},
                "user_metadata": {},
            },
            SELF_PROMOTED_TOKEN: {
                "id": "9f8e7d6c-5b4a-4c3d-8e2f-1a0b9c8d7e6f",
                "email": "sneaky@example.com",
                "app_metadata": {},
                "user_metadata": {"is_admin": True},
            },
        }
        self.passwords = {"admin@example.com": ("correct-horse", ADMIN_TOKEN)}
        self.calls = []
        self.signed_out = []

    async def get_user(self, token):
        self.calls.append(("get_user", token))
        if token not in self.users:
            raise AuthProviderError("invalid JWT", 401)
        return self.users[token]

    async def sign_in_with_password(self, email, password):
        self.calls.append(("sign_in", email))
        expected = self.passwords.get(email)
        if expected is None or expected[0] != password:
            raise AuthProviderError("Invalid login credentials", 400)
        token = expected[1]
        return {
            "access_token": token,
            "refresh_token": "refresh-" + token,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": self.users[token],
        }

    async def sign_out(self, token):
        self.signed_out.append(token)


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        SUPABASE_URL="http://auth.test",
        SUPABASE_ANON_KEY="test-anon-key",
        ENVIRONMENT="test",
        _env_file=None,
    )


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def logger(settings, log_stream):
    return AppLogger(settings, stream=log_stream)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def session_factory(settings):
    engine = build_engine(settings.DB_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(settings, logger, identity_provider, clock, session_factory):
    app = create_app(
        settings,
        logger=logger,
        identity_provider=identity_provider,
        rate_limiter=RateLimiter(clock=clock),
    )

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def catalog(db_session):
    """One category, one brand and one active product."""
    tvs = Category(name="TVs", slug="tvs")
    audio = Category(name="Audio", slug="audio")
    brand = Brand(name="Lumen", slug="lumen")
    db_session.add_all([tvs, audio, brand])
    await db_session.flush()

    product = Product(
        name="Lumen OLED 55",
        slug="lumen-oled-55",
        description="A 55 inch OLED television with deep blacks.",
        short_description="55 inch OLED television",
        price=Decimal("1299.99"),
        stock_quantity=4,
        sku="LUM-OLED-55",
        images=["https://cdn.example.com/oled-55.jpg"],
        specifications={"size": "55in"},
        category_id=tvs.id,
        brand_id=brand.id,
    )
    db_session.add(product)
    await db_session.commit()
    return {"category": tvs, "other_category": audio, "brand": brand, "product": product}


def product_payload(category_id, brand_id, **overrides):
    payload = {
        "name": "Lumen QLED 65",
        "slug": "lumen-qled-65",
        "description": "A 65 inch QLED television for bright rooms.",
        "short_description": "65 inch QLED television",
        "price": 999.0,
        "stock_quantity": 10,
        "sku": "LUM-QLED-65",
        "images": ["https://cdn.example.com/qled-65.jpg"],
        "specifications": {"size": "65in", "hdr": True},
        "category_id": str(category_id),
        "brand_id": str(brand_id),
    }
    payload.update(overrides)
    return payload
