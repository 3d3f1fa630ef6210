import asyncio
import logging

from config.settings import settings
from core.db import build_engine, create_schema
from core.logging import configure_logging

logger = logging.getLogger(__name__)


async def main():
    """
    Create the users, user_profiles and user_addresses tables directly from
    the ORM models. Handy for a throwaway dev database; real deployments run
    `alembic upgrade head` instead.
    """
    db_url = settings.database_url
    if not db_url or db_url == "disabled":
        raise RuntimeError(f"DATABASE_URL is not configured correctly: {db_url}")

    engine = build_engine(db_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    logger.info("Database schema created/updated (dialect=%s)", engine.dialect.name)


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(main())
