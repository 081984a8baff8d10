#!/usr/bin/env python3
"""
Database migration management script.

Usage:
    python migrate.py migrate              # Apply all pending migrations
    python migrate.py rollback             # Roll back the last migration
    python migrate.py status               # Show the applied revision
    python migrate.py history              # List all revisions
    python migrate.py make <name>          # Autogenerate a new revision from the models
    python migrate.py upgrade <revision>   # Upgrade to a specific revision
    python migrate.py downgrade <revision> # Downgrade to a specific revision

Applied revisions are recorded in the alembic_version table, so running
``migrate`` twice is a no-op.
"""

import sys
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parent / "alembic.ini"


def get_alembic_config(database_url: Optional[str] = None) -> Config:
    """Load alembic.ini, optionally pointing it at ``database_url``."""
    if not ALEMBIC_INI.exists():
        print(f"ERROR: alembic.ini not found at {ALEMBIC_INI}")
        sys.exit(1)

    config = Config(str(ALEMBIC_INI))
    # Resolve script_location against the repo root, not the caller's cwd
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "migrations"))
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


def migrate(config: Optional[Config] = None):
    print("Running migrations...")
    command.upgrade(config or get_alembic_config(), "head")
    print("✓ Migrations completed successfully!")


def rollback(config: Optional[Config] = None):
    print("Rolling back last migration...")
    command.downgrade(config or get_alembic_config(), "-1")
    print("✓ Rollback completed successfully!")


def status(config: Optional[Config] = None):
    print("Migration status:")
    command.current(config or get_alembic_config(), verbose=True)


def history(config: Optional[Config] = None):
    print("Migration history:")
    command.history(config or get_alembic_config())


def make_migration(name: Optional[str], config: Optional[Config] = None):
    """Autogenerate a revision by diffing the models against the database."""
    if not name:
        print("ERROR: Migration name is required")
        print("Usage: python migrate.py make <migration_name>")
        sys.exit(1)

    print(f"Creating new migration: {name}")
    command.revision(config or get_alembic_config(), message=name, autogenerate=True)
    print("✓ Migration file created successfully!")


def upgrade_to(revision: str, config: Optional[Config] = None):
    print(f"Upgrading to revision: {revision}")
    command.upgrade(config or get_alembic_config(), revision)
    print("✓ Upgrade completed successfully!")


def downgrade_to(revision: str, config: Optional[Config] = None):
    print(f"Downgrading to revision: {revision}")
    command.downgrade(config or get_alembic_config(), revision)
    print("✓ Downgrade completed successfully!")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__)
        return 1

    command_name = argv[0].lower()
    argument = argv[1] if len(argv) > 1 else None

    simple_commands = {
        "migrate": migrate,
        "rollback": rollback,
        "status": status,
        "history": history,
    }

    if command_name in simple_commands:
        simple_commands[command_name]()
    elif command_name == "make":
        make_migration(argument)
    elif command_name == "upgrade":
        upgrade_to(argument or "head")
    elif command_name == "downgrade":
        downgrade_to(argument or "-1")
    elif command_name in ("help", "--help", "-h"):
        print(__doc__)
    else:
        print(f"ERROR: Unknown command: {command_name}")
        print(__doc__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
