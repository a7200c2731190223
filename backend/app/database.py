from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


def build_engine(url: str):
    # SQLite connections are bound to the loop that opened them; don't pool them.
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False, poolclass=NullPool)
    return create_async_engine(url, echo=False, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)

async_session_factory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session
