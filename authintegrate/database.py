# =======================================================================================
# authintegrate/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool

from .config import Config, config as default_config
from .models.tables import metadata


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, settings: Optional[Config] = None):
        settings = settings or default_config
        self.url = settings.DB_URL

        if self.url.startswith("sqlite"):
            # Local development and tests; cascades need the pragma on every connection
            self.engine: Engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                future=True,
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(
                self.url,
                poolclass=QueuePool,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                future=True,
            )

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """Get a database connection with automatic commit/rollback."""
        with self.engine.begin() as conn:
            yield conn

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
