from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from sociallearn.core.config import Settings


def _enable_sqlite_transactions(engine: Engine) -> None:
    # pysqlite defers BEGIN on its own; take over so SAVEPOINT and
    # multi-statement transactions behave like they do on PostgreSQL.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"} or "mode=memory" in url


class Database:
    """Owns the engine and its connection pool.

    Built once by the application factory (or a script) and handed to whatever
    needs a session; nothing in the package keeps a global engine.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ) -> None:
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
            )

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            _enable_sqlite_transactions(self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    def create_db_and_tables(self) -> None:
        # Ensure all SQLModel table classes are imported before metadata.create_all.
        import sociallearn.models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def drop_db_and_tables(self) -> None:
        SQLModel.metadata.drop_all(self.engine)

    def rebuild_db(self) -> None:
        self.drop_db_and_tables()
        self.create_db_and_tables()

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def get_session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def dispose(self) -> None:
        self.engine.dispose()
