from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from storefront.core.config import settings

Base = declarative_base()


def build_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(db_url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    # objects stay readable after commit; services return them to the routes
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.DB_URL)
AsyncSessionLocal = build_session_factory(engine)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
