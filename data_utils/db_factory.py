from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from data_utils.settings import DatabaseSettings

# 1. Global storage
_engine: Optional[Engine] = None


def get_db_url(original_dsn: str) -> str:
    url = make_url(original_dsn)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg")
    return url.render_as_string(hide_password=False)


def init_db(settings: DatabaseSettings) -> Engine:
    """
    Create the process-wide engine once. The engine's pool is the only
    resource shared between requests.
    """
    global _engine
    if _engine is not None:
        return _engine

    _engine = create_engine(
        get_db_url(settings.pg_dsn),
        pool_pre_ping=True,
        pool_size=settings.PGSQL_POOL_SIZE,
        max_overflow=settings.PGSQL_MAX_OVERFLOW,
    )
    return _engine


@contextmanager
def pooled_pg_connection(engine: Engine) -> Generator[psycopg.Connection, None, None]:
    """
    Borrow a connection from the engine's pool and hand out the raw psycopg
    driver connection. The connection goes back to the pool on exit.

    Usage:
        with pooled_pg_connection(engine) as conn:
            with conn.transaction():
                conn.execute(...)
    """
    with engine.connect() as sa_conn:
        yield sa_conn.connection.driver_connection


def make_connection_factory(engine: Engine):
    """Bind pooled_pg_connection to an engine, for repositories."""
    def factory():
        return pooled_pg_connection(engine)
    return factory


def create_schema(engine: Engine) -> None:
    """Create the segments and subscribers tables if they are missing."""
    # Imported here so the ORM registry is populated before create_all().
    from data_models.base import Base
    from data_models import dbo_segment, dbo_subscriber  # noqa: F401

    Base.metadata.create_all(engine)
