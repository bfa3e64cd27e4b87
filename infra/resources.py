"""Infrastructure resources: the durable chat store.

This module is part of the infra layer and must not import from application features.
"""
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(
        self,
        database_url: str,
        statement_timeout_ms: int | None = None,
        lock_timeout_ms: int | None = None,
    ):
        self.database_url = database_url
        self.statement_timeout_ms = statement_timeout_ms
        self.lock_timeout_ms = lock_timeout_ms
        self.engine = None
        self.session_factory = None

    @property
    def is_postgres(self) -> bool:
        return self.database_url.startswith("postgresql")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_async_engine``.

        On Postgres the timeouts are sent as asyncpg ``server_settings`` so
        every pooled connection carries them.
        """
        options: Dict[str, Any] = {"echo": False, "pool_pre_ping": True}
        if not self.is_postgres:
            return options

        options["pool_recycle"] = 3600
        server_settings = {}
        if self.statement_timeout_ms:
            server_settings["statement_timeout"] = str(int(self.statement_timeout_ms))
        if self.lock_timeout_ms:
            server_settings["lock_timeout"] = str(int(self.lock_timeout_ms))
        if server_settings:
            options["connect_args"] = {"server_settings": server_settings}
        return options

    async def init(self):
        """Initialize database connection."""
        self.engine = create_async_engine(self.database_url, **self.engine_options())
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self

    async def ping(self) -> None:
        """Verify connectivity."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
