"""Async engine setup, schema creation and seed data."""

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import models  # noqa: F401  (registers tables on SQLModel.metadata)
from models import DEFAULT_INFO_BLOCKS, InfoBlock
from models.upsert import bulk_upsert

logger = logging.getLogger(__name__)


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    engine = create_async_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            if engine.url.database not in (None, "", ":memory:"):
                cursor.execute("PRAGMA journal_mode = WAL")
            cursor.close()

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def seed_info_blocks(session: AsyncSession) -> None:
    """Insert the default info blocks, leaving edited ones untouched."""
    blocks = [
        InfoBlock(key=key.value, text=text, url=url)
        for key, (text, url) in DEFAULT_INFO_BLOCKS.items()
    ]
    await bulk_upsert(session, blocks, keep_existing=("text", "url"))
    logger.info(f"Seeded {len(blocks)} default info blocks")
