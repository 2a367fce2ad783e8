"""Alembic environment for the documents and phi_violations tables.

Default URL uses local SQLite (`sqlite:///./shift_guard.db`). Override with
`SHIFTGUARD_STORE_DATABASE_URL` or `DATABASE_URL` for Postgres.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from shift_guard.phi.db import metadata as target_metadata
from shift_guard.store.dependencies import resolve_database_url
# Import models so metadata is populated
import shift_guard.phi.models  # noqa: F401
import shift_guard.store.models  # noqa: F401


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_url() -> str:
    """Resolve database URL with a safe default for local runs."""
    return resolve_database_url(fallback=config.get_main_option("sqlalchemy.url"))


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
