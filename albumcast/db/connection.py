"""Database engine and session management."""

import logging
from typing import Callable

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for the given URL.

    In-memory SQLite URLs share a single connection so every session sees
    the same database.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
    logger.info(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables known to SQLModel metadata."""
    from .. import models  # noqa: F401  (registers tables)

    SQLModel.metadata.create_all(engine)


def make_session_factory(engine: Engine) -> SessionFactory:
    """Return a factory producing sessions bound to the engine."""

    def _factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return _factory
