"""Database engine factory for SQLModel."""

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from core.log import get_logger
from core.models.rows import AuthFileMapping, ModelPrice, UsageRecord
from core.types import Environment

logger = get_logger(__name__)

IN_MEMORY_URL = "sqlite:///:memory:"


def setup_database_url(
    environment: Environment,
    db_path: Path | None = None,
    database_url: str | None = None,
) -> str:
    """Construct database URL based on environment configuration.

    Args:
        environment: Environment type
        db_path: Optional custom SQLite path. If provided, overrides default path.
        database_url: Optional full database URL. Takes precedence over everything.

    Returns:
        Database connection URL
    """
    if database_url:
        return database_url

    if environment == Environment.TESTING:
        return IN_MEMORY_URL

    if db_path is not None:
        db_path = Path(db_path)
    elif environment == Environment.PRODUCTION:
        db_path = Path("db", "tokenscope.db")
    elif environment == Environment.DEVELOPMENT:
        db_path = Path("db", "tokenscope.dev.db")
    else:
        raise ValueError(f"Unknown environment: {environment}")

    # Ensure the directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def create_database_engine(
    environment: Environment,
    echo: bool = False,
    db_path: Path | None = None,
    database_url: str | None = None,
) -> Engine:
    """Create database engine based on environment configuration.

    Args:
        environment: Environment type
        echo: Enable SQL echo for debugging
        db_path: Optional custom SQLite path
        database_url: Optional full database URL

    Returns:
        Configured SQLModel engine
    """
    url = setup_database_url(environment, db_path, database_url)
    logger.info(f"Creating database engine for: {url.split('@')[-1]}")

    if url == IN_MEMORY_URL:
        # One shared connection, otherwise each pooled connection sees its own
        # empty in-memory database.
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": 60.0,
            },
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_size=10,
        )

    return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=3600)


def create_database_tables(engine: Engine) -> None:
    """Create all database tables using SQLModel."""
    logger.info("Creating database tables...")

    SQLModel.metadata.create_all(engine)

    for model in (UsageRecord, ModelPrice, AuthFileMapping):
        logger.info(f"> Created table for {model.__tablename__}")


def drop_database_tables(engine: Engine) -> None:
    """Drop all database tables (use with caution)."""
    logger.warning("Dropping all database tables...")

    SQLModel.metadata.drop_all(engine)

    logger.info("Database tables dropped successfully")


def reset_database(engine: Engine) -> None:
    """Reset database by dropping and recreating all tables."""
    logger.warning("Resetting database...")

    drop_database_tables(engine)
    create_database_tables(engine)

    logger.info("Database reset completed")
