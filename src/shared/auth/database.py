"""Database setup and configuration."""

from sqlalchemy import create_engine, inspect, Column, String, DateTime, CheckConstraint
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
import logging
import os
import uuid
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file (for local development)
load_dotenv()

# PostgreSQL in production; a local SQLite file keeps development setups working
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./checkmate.db")

# Heroku/Supabase hand out postgres:// but SQLAlchemy 2.0+ requires postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
}
if DATABASE_URL.startswith("sqlite"):
    # Request handlers run in a threadpool
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_recycle"] = 3600  # Recycle connections after 1 hour

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

USER_ROLES = ("ADMIN", "IT_ENGINEER", "VIEWER")


class User(Base):
    """Dashboard staff member. Accounts are provisioned by the session provider."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, default="VIEWER", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('ADMIN', 'IT_ENGINEER', 'VIEWER')", name="check_user_role"),
    )


def init_db(database_url: Optional[str] = None):
    """
    Bring the schema up to the latest Alembic revision.

    A database whose tables were created before migrations were versioned
    (no alembic_version table) is stamped at head instead of re-created.
    """
    from alembic import command
    from migrate import get_alembic_config

    url = database_url or DATABASE_URL
    config = get_alembic_config(url)
    config.attributes["configure_logger"] = False
    target = create_engine(url) if database_url else engine

    try:
        # Migrations run on this engine's connection, so in-memory databases see them
        with target.begin() as connection:
            config.attributes["connection"] = connection
            tables = set(inspect(connection).get_table_names())
            if "users" in tables and "alembic_version" not in tables:
                logging.warning("Unversioned schema found, stamping it at the latest migration")
                command.stamp(config, "head")
            command.upgrade(config, "head")
        logging.info("Database schema is up to date")
    except Exception as e:
        logging.error(f"Database initialization error: {str(e)}")
        raise
    finally:
        if target is not engine:
            target.dispose()


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
