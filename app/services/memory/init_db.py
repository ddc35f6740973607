"""Database initialization script for the chat, preference and animal tables."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.services.memory.db import build_engine
from app.services.memory.models import Base

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine) -> None:
    """Create tables that don't exist yet."""
    logger.info(f"Initializing database at {engine.url.render_as_string(hide_password=True)}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")


async def _main() -> None:
    from core.config import get_settings

    engine = build_engine(get_settings().DATABASE_URL)
    try:
        await init_database(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    import core.logging  # noqa: F401

    asyncio.run(_main())
