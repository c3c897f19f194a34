"""Initialise the database schema.

Run once to create the profiles, design_jobs and ir_versions tables:
    python -m scripts.init_db

Optionally seeds a default profile so the UI has something to select:
    python -m scripts.init_db --seed-profile
"""

import argparse
import asyncio
import os

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from testdesign.db.models import Base, Profile

logger = structlog.get_logger()

DEFAULT_PROFILE_NAME = "Default"


async def init(seed_profile: bool = False) -> None:
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "testdesign")
    user = os.getenv("POSTGRES_USER", "testdesign")
    password = os.getenv("POSTGRES_PASSWORD", "testdesign-dev")
    database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"
    logger.info("init_db", url=database_url.split("@")[-1])  # log host only

    engine = create_async_engine(database_url, echo=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed_profile:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as session:
            async with session.begin():
                existing = await session.execute(select(Profile.id).limit(1))
                if existing.scalar() is None:
                    session.add(Profile(name=DEFAULT_PROFILE_NAME))
                    logger.info("init_db.seeded", profile=DEFAULT_PROFILE_NAME)
                else:
                    logger.info("init_db.seed_skipped", reason="profiles already exist")

    await engine.dispose()
    logger.info("init_db.done")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed-profile", action="store_true",
                        help="create a default profile when none exist")
    args = parser.parse_args()
    asyncio.run(init(seed_profile=args.seed_profile))
