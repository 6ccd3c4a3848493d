from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from farmout_dispatch.config import Settings

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def build_engine(database_url: str | None, echo: bool = False) -> AsyncEngine:
    url = database_url or DEFAULT_DATABASE_URL
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        _enable_sqlite_savepoints(engine)
        return engine
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_engine_from_settings(settings: Settings) -> AsyncEngine:
    if not settings.use_in_memory and not settings.database_url:
        raise RuntimeError("DATABASE_URL is required for SQL mode")
    return build_engine(settings.database_url, echo=settings.sql_echo)


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # pysqlite defers BEGIN, which breaks SAVEPOINT; emit BEGIN ourselves.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
