"""Create every ProofBench table on the configured database.

Usage: python -m proofbench.db.models.init_db
"""
import asyncio

from loguru import logger

from proofbench.db.models.database import Base
from proofbench.db.session import engine


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"✅ Tables created on {engine.url.render_as_string(hide_password=True)}")


async def main() -> None:
    try:
        await init_db()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
