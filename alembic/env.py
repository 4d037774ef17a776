import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from sellfast.core.config import settings
from sellfast.models import Base  # noqa: F401  (registers every model)

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

# `alembic -x db_url=postgresql+asyncpg://... upgrade head` targets another database
DB_URL = context.get_x_argument(as_dictionary=True).get("db_url") or settings.database_url


def _configure(**kwargs) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **kwargs)


def _migrate_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_async() -> None:
    engine = create_async_engine(DB_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure(url=DB_URL, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_async())
