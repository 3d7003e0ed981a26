"""Database Configuration for MediaSync."""

from __future__ import annotations

from pathlib import Path
from types import TracebackType

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mediasync.exceptions import DataPathError
from mediasync.utils.version import PROJECT_ROOT

__all__ = ["DB_FILENAME", "MediaSyncDB"]

DB_FILENAME = "mediasync.db"


class MediaSyncDB:
    """Database manager for the on-device store.

    Handles the creation, initialization, and migration of the SQLite database,
    including file system operations and schema management. Uses SQLAlchemy for ORM
    and Alembic for database migrations.

    Can be used as a context manager to automatically close the database session.
    """

    def __init__(self, data_path: Path, run_migrations: bool = True) -> None:
        """Initializes the database manager.

        Args:
            data_path (Path): Directory where the database should be stored
            run_migrations (bool): Upgrade the schema with Alembic. When False the
                tables are created directly from the model metadata.

        Raises:
            DataPathError: If data_path exists but is a file instead of a directory
        """
        self.data_path = data_path
        self.db_path = data_path / DB_FILENAME
        self.url = f"sqlite:///{self.db_path}"

        self.engine = self._setup_db()
        self._SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
        self._session: Session | None = None

        if run_migrations:
            self._do_migrations()
        else:
            from mediasync.models.db import Base

            Base.metadata.create_all(self.engine)

    def _setup_db(self) -> Engine:
        """Creates the data directory and the SQLAlchemy engine.

        Returns:
            Engine: Configured SQLAlchemy engine instance

        Raises:
            DataPathError: If data_path exists but is a file instead of a directory
        """
        import mediasync.models.db  # noqa: F401

        if not self.data_path.exists():
            self.data_path.mkdir(parents=True, exist_ok=True)
        elif self.data_path.is_file():
            raise DataPathError(
                f"The path '{self.data_path}' is a file, please delete it first or "
                "choose a different data folder path"
            )

        engine = create_engine(
            self.url,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
            future=True,
        )

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):
            cur = dbapi_connection.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
                cur.execute("PRAGMA temp_store=MEMORY;")
                cur.execute("PRAGMA foreign_keys=ON;")
            finally:
                cur.close()

        return engine

    def _do_migrations(self) -> None:
        """Executes database migrations using Alembic.

        Raises:
            AlembicError: If migration execution fails
        """
        from alembic import command
        from alembic.config import Config

        cfg = Config()
        cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        cfg.set_main_option("sqlalchemy.url", self.url)

        command.upgrade(cfg, "head")

    def new_session(self) -> Session:
        """Open a fresh session; the caller is responsible for closing it."""
        return self._SessionLocal()

    def dispose(self) -> None:
        """Close the shared session and release pooled connections."""
        if self._session is not None:
            self._session.close()
            self._session = None
        self.engine.dispose()

    def __enter__(self) -> MediaSyncDB:
        """Enters the context manager, returning the database instance."""
        self._session = self._SessionLocal()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the session opened for this context, if any."""
        if self._session is not None:
            self._session.close()
            self._session = None

    @property
    def session(self) -> Session:
        """Return the current SQLAlchemy session, creating it if needed."""
        if self._session is None:
            self._session = self._SessionLocal()
        return self._session
