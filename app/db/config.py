from __future__ import annotations

import os
import pathlib
from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

backend_dir = pathlib.Path(__file__).parent.parent.parent
db_path = backend_dir / "dev.db"
DEFAULT_SQLITE_URL = f"sqlite+aiosqlite:///{db_path}"

DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_SQLITE_URL)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(engine: AsyncEngine) -> None:
    """Replace SQLite's ASCII-only ``lower()`` with a Unicode-aware one.

    Case-insensitive text search compiles to ``lower(col) LIKE lower(?)``;
    without this, ``É`` and ``é`` are treated as different characters.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function(
            "lower", 1, _unicode_lower
        )


engine = create_async_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    future=True,
    pool_pre_ping=True,
)
register_sqlite_functions(engine)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async DB session."""
    async with SessionLocal() as session:  # type: ignore
        try:
            yield session
        finally:
            # rollback if something left open
            if session.in_transaction():
                await session.rollback()
