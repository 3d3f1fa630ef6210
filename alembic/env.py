"""
Alembic environment for the user service schema.

The application talks to the database through async drivers (aiomysql,
aiosqlite); Alembic runs synchronously, so the URL from config.settings is
rewritten to the matching sync driver before connecting.

    alembic upgrade head
    alembic revision --autogenerate -m "add column"
    alembic downgrade -1
"""
from logging.config import fileConfig
import os
import sys

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import settings
from core.db import Base
from models import db_models  # noqa: F401 registers users, user_profiles, user_addresses

SYNC_DRIVERS = {
    "mysql+aiomysql://": "mysql+pymysql://",
    "sqlite+aiosqlite://": "sqlite://",
}

alembic_config = context.config
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name, disable_existing_loggers=False)


def sync_url(url: str) -> str:
    for async_prefix, sync_prefix in SYNC_DRIVERS.items():
        if url.startswith(async_prefix):
            return sync_prefix + url[len(async_prefix):]
    return url


def migration_url() -> str:
    """A sqlalchemy.url set in alembic.ini (or via Config.set_main_option) wins over settings."""
    return alembic_config.get_main_option("sqlalchemy.url") or sync_url(settings.database_url)


def _configure(**kwargs) -> None:
    url = kwargs.get("url") or str(kwargs["connection"].engine.url)
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration as a SQL script instead of executing it."""
    _configure(url=migration_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = alembic_config.get_section(alembic_config.config_ini_section) or {}
    section["sqlalchemy.url"] = migration_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    try:
        with connectable.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
