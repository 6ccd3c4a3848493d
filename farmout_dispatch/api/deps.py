from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.config import get_settings
from farmout_dispatch.infrastructure.db.engine import build_engine_from_settings, build_sessionmaker

settings = get_settings()

# Falls back to an in-memory SQLite database when DATABASE_URL is unset
engine = build_engine_from_settings(settings)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
