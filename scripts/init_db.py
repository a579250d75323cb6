"""Create all tables directly from metadata, bypassing migrations.

Useful for local development and throwaway databases. Production schemas
are managed with Alembic (scripts/migrate.py).
"""

import asyncio

from sqlalchemy import text

from gpms.database import engine
from gpms.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
