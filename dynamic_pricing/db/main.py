import logging
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from dynamic_pricing.config import Config

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

from sqlalchemy.ext.asyncio import create_async_engine

engine_options = {"echo": False, "future": True}
if not Config.DATABASE_URL.startswith("sqlite"):
    engine_options.update(pool_size=10, max_overflow=20, pool_timeout=60)

async_engine = create_async_engine(Config.DATABASE_URL, **engine_options)

Session = sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_db() -> None:
    # models must be imported so their tables are on the metadata
    from dynamic_pricing.db import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession: # type: ignore
    async with Session() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Session error: {e}")
            raise
