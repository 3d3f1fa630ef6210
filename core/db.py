"""
Async database engine and session management.

Purpose:
- Create SQLAlchemy async engine for the configured database (aiomysql in
  production, aiosqlite in-memory under the test profile)
- Provide async session factory for dependency injection
- Provide Base declarative class for ORM models

Production notes:
- Use connection pooling with appropriate pool_size and max_overflow
- Schema changes go through Alembic; create_all is only used for dev/test
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from config.settings import settings
from core.exceptions import DatabaseUnavailableException
import logging
from typing import AsyncGenerator, Optional

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_sqlite(url: str) -> bool:
	return url.startswith("sqlite")


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
	"""SQLite ignores FOREIGN KEY clauses unless the pragma is set per connection."""

	@event.listens_for(engine.sync_engine, "connect")
	def _set_pragma(dbapi_connection, connection_record):
		cursor = dbapi_connection.cursor()
		cursor.execute("PRAGMA foreign_keys=ON")
		cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
	"""
	Create an async engine for `url`.

	In-memory SQLite needs a single shared connection (StaticPool), otherwise
	every pooled connection would see its own empty database.
	"""
	if _is_sqlite(url):
		engine = create_async_engine(
			url,
			echo=echo,
			poolclass=StaticPool,
			connect_args={"check_same_thread": False},
		)
		enable_sqlite_foreign_keys(engine)
		return engine
	return create_async_engine(url, echo=echo, pool_pre_ping=True)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
	return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


# When the URL is "disabled", do not create an engine at all.
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None

if settings.database_url and settings.database_url != "disabled":
	engine = build_engine(settings.database_url, echo=settings.DEBUG)
	async_session_maker = build_session_maker(engine)
	logger.info("Async DB engine created (profile=%s, dialect=%s)", settings.APP_PROFILE, engine.dialect.name)
else:
	logger.warning("DATABASE_URL is 'disabled' - DB engine will not be created.")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
	"""Yield an AsyncSession bound to the configured engine."""
	if async_session_maker is None:
		raise DatabaseUnavailableException("DB unavailable: DATABASE_URL is disabled")

	async with async_session_maker() as session:
		yield session


async def create_schema(target: Optional[AsyncEngine] = None) -> None:
	"""Create all tables (dev/test convenience; production uses Alembic)."""
	# Make sure model classes are registered on Base.metadata
	from models import db_models  # noqa: F401

	target = target or engine
	if target is None:
		raise RuntimeError("Database is disabled; cannot create schema")
	async with target.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)
