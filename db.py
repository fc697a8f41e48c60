from __future__ import annotations

import os
from typing import Iterator

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config import int_env

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gpat.db")

# Render sometimes hands out postgres://; normalize to postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Force psycopg3 driver if using Postgres
if DATABASE_URL.startswith("postgresql://") and "+psycopg" not in DATABASE_URL:
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)

POOL_SIZE = int_env("DB_POOL_SIZE", 5)
MAX_OVERFLOW = int_env("DB_MAX_OVERFLOW", 5)
# how long a request waits in line for a pooled connection
POOL_TIMEOUT = int_env("DB_POOL_TIMEOUT", 30)
# 0 disables the per-statement limit
STATEMENT_TIMEOUT_MS = int_env("DB_STATEMENT_TIMEOUT_MS", 0)

# stable names for constraints/indexes across DBs
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
_metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = _metadata


_is_sqlite = DATABASE_URL.startswith("sqlite")

connect_args: dict = {}
if _is_sqlite:
    connect_args = {"check_same_thread": False}
    if STATEMENT_TIMEOUT_MS:
        connect_args["timeout"] = STATEMENT_TIMEOUT_MS / 1000
elif STATEMENT_TIMEOUT_MS:
    connect_args = {"options": f"-c statement_timeout={STATEMENT_TIMEOUT_MS}"}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
    pool_size=POOL_SIZE,
    max_overflow=MAX_OVERFLOW,
    pool_timeout=POOL_TIMEOUT,
)

if _is_sqlite:

    @event.listens_for(engine, "connect")
    def _enable_sqlite_fks(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Dependency hook so writers can open their own scoped transaction."""
    return SessionLocal
