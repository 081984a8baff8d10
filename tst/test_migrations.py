"""Tests for the Alembic migration chain."""

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect, text

from migrate import get_alembic_config, main
from src.shared.auth.database import Base, init_db
from src.shared.clients import database as _clients  # noqa: F401
from src.shared.integrations import database as _integrations  # noqa: F401

HEAD = "0004_add_client_notion_extras"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def alembic_config(database_url):
    config = get_alembic_config(database_url)
    config.attributes["configure_logger"] = False
    return config


def test_upgrade_creates_schema(alembic_config, database_url):
    command.upgrade(alembic_config, "head")

    inspector = inspect(create_engine(database_url))
    assert {"users", "clients", "integration_settings", "alembic_version"} <= set(inspector.get_table_names())
    client_columns = {c["name"] for c in inspector.get_columns("clients")}
    assert {"notion_page_id", "dmarc", "spf", "dkim_selector", "notion_last_synced"} <= client_columns
    assert {"trello_url", "accepted_password_policy", "hr_processes", "policies", "estimation"} <= client_columns


def test_upgrade_is_idempotent(alembic_config, database_url):
    command.upgrade(alembic_config, "head")
    command.upgrade(alembic_config, "head")

    with create_engine(database_url).connect() as conn:
        versions = conn.execute(text("SELECT version_num FROM alembic_version")).scalars().all()
    assert versions == [HEAD]


def test_downgrade_removes_email_security_columns(alembic_config, database_url):
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "0002_create_integration_settings")

    inspector = inspect(create_engine(database_url))
    assert "dmarc" not in {c["name"] for c in inspector.get_columns("clients")}

    command.downgrade(alembic_config, "base")
    assert "clients" not in inspect(create_engine(database_url)).get_table_names()


def test_cli_rejects_unknown_command(capsys):
    assert main(["explode"]) == 1
    assert "Unknown command" in capsys.readouterr().out


def test_startup_init_leaves_migrations_runnable(alembic_config, database_url):
    init_db(database_url)
    command.upgrade(alembic_config, "head")

    with create_engine(database_url).connect() as conn:
        versions = conn.execute(text("SELECT version_num FROM alembic_version")).scalars().all()
    assert versions == [HEAD]


def test_unversioned_schema_is_stamped(alembic_config, database_url):
    engine = create_engine(database_url)
    Base.metadata.create_all(engine)

    init_db(database_url)
    command.upgrade(alembic_config, "head")

    with engine.connect() as conn:
        versions = conn.execute(text("SELECT version_num FROM alembic_version")).scalars().all()
    assert versions == [HEAD]
