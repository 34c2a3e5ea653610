from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from closeflow.core.config import settings

_engine_kwargs = {}
if not settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
    _engine_kwargs = dict(
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,   # Recycle connections after 1 hour
        pool_reset_on_return='commit',
    )

engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=False,
    future=True,
    **_engine_kwargs,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
