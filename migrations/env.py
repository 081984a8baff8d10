"""Alembic environment for the CheckMate schema."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from src.shared.auth.database import DATABASE_URL, Base
# Register every model on Base.metadata for autogenerate
from src.shared.clients import database as _clients  # noqa: F401
from src.shared.integrations import database as _integrations  # noqa: F401

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# An explicit URL (tests, CLI -x overrides) wins over the environment
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", DATABASE_URL)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_on_connection(connection) -> None:
    # Batch mode lets ALTER-style operations run on SQLite
    context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # init_db hands over the application's own connection
    connection = config.attributes.get("connection")
    if connection is not None:
        run_on_connection(connection)
        return

    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        run_on_connection(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
