"""Database access for albumcast."""

from .connection import SessionFactory, create_db_engine, init_db, make_session_factory

__all__ = ["SessionFactory", "create_db_engine", "init_db", "make_session_factory"]
