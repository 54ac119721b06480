from logging.config import fileConfig
from sqlalchemy import engine_from_config, make_url
from sqlalchemy import pool
from alembic import context

from vidify.config import settings
from vidify.models import Base

config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _synchronous_url(async_url: str) -> str:
    """Alembic runs on a synchronous driver; swap out the async one."""
    url = make_url(async_url)
    driver = url.drivername

    if driver in {"postgresql+asyncpg", "postgresql+psycopg_async", "postgresql+psycopg2", "postgresql"}:
        url = url.set(drivername="postgresql+psycopg")
    elif driver in {"sqlite+aiosqlite", "sqlite"}:
        url = url.set(drivername="sqlite+pysqlite")

    return url.render_as_string(hide_password=False)


sync_database_url = _synchronous_url(settings.database_url)


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting to the database."""
    context.configure(
        url=sync_database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = sync_database_url
    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # CHECK/UNIQUE constraints on SQLite need batch mode
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
