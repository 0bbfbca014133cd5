"""
Database initialization and bootstrapping.
"""

from autobilling.db.base import Base
from autobilling.db import session as db_session
from autobilling.core.logging import get_logger

# Register all models with Base.metadata
import autobilling.models  # noqa: F401

logger = get_logger(__name__)


async def create_tables() -> None:
    """
    Create all database tables.
    Intended for local runs; deployed databases are managed through migrations.
    """
    if db_session.engine is None:
        db_session.create_engine()

    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables initialized", extra={"tables": sorted(Base.metadata.tables)})
