"""
Database handle for statesync.

A Database wraps one SQLAlchemy engine and its session factory. It is
constructed explicitly at process start, passed to the stores that need it,
and closed at shutdown. There is no module-level connection.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)


class Database:
    """
    Connection manager shared by CredentialStore and StateStore.

    Example usage:
        db = Database("postgresql://user:pw@localhost:5432/statesync")
        db.init_schema()

        with db.get_session() as session:
            session.execute(text("SELECT 1"))

        db.close()
    """

    def __init__(self, connection_string: str):
        """
        Open the engine.

        Args:
            connection_string: SQLAlchemy database URL. In-memory SQLite
                               ("sqlite://") shares one connection so every
                               session sees the same data.
        """
        self.url = connection_string

        if connection_string.startswith("sqlite"):
            engine_kwargs = {"connect_args": {"check_same_thread": False}}
            if connection_string in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
            self.engine = create_engine(connection_string, **engine_kwargs)
        else:
            self.engine = create_engine(
                connection_string,
                poolclass=QueuePool,
                pool_size=10,
                max_overflow=20,
                pool_timeout=30,
                pool_pre_ping=True,  # Test connections before use (detect stale)
                pool_recycle=300,
            )
        self.Session = sessionmaker(bind=self.engine)
        logger.info(f"Database engine opened ({self.engine.dialect.name})")

    @contextmanager
    def get_session(self):
        """
        Get a database session with automatic commit/rollback.

        Usage:
            with db.get_session() as session:
                result = session.execute(query)
        """
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        with self.get_session() as session:
            session.execute(text("SELECT 1"))

    def close(self) -> None:
        """Dispose of the engine and every pooled connection."""
        self.engine.dispose()
        logger.info("Database engine closed")

    # ==========================================
    # Schema Initialization
    # ==========================================

    def init_schema(self) -> None:
        """
        Create tables if they do not exist.

        Call this once during application startup.
        """
        with self.get_session() as session:
            session.execute(text("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id VARCHAR(36) PRIMARY KEY,
                    correlation_id VARCHAR(36) UNIQUE NOT NULL,
                    email VARCHAR(255) UNIQUE NOT NULL,
                    name VARCHAR(255),
                    password_hash VARCHAR(255) NOT NULL,
                    totp_secret VARCHAR(64),
                    totp_enabled BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL
                )
            """))

            # One state document per owner; the UNIQUE constraint backs the upsert
            session.execute(text("""
                CREATE TABLE IF NOT EXISTS state_documents (
                    owner_correlation_id VARCHAR(36) PRIMARY KEY,
                    payload TEXT NOT NULL,
                    last_updated TIMESTAMP WITH TIME ZONE NOT NULL
                )
            """))

            session.execute(text("""
                CREATE INDEX IF NOT EXISTS idx_state_last_updated
                ON state_documents(owner_correlation_id, last_updated)
            """))

        logger.info("Database schema initialized")
