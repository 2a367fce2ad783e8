"""DB wiring for documents and the PHI violation trail (SQLAlchemy sessions)."""

from __future__ import annotations

import os
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def resolve_database_url(configured: str | None = None, *, fallback: str | None = None) -> str:
    """Resolve DB URL for document and audit persistence.

    Priority:
    1) explicit value (settings)
    2) SHIFTGUARD_STORE_DATABASE_URL
    3) DATABASE_URL (Alembic target)
    4) ``fallback`` (alembic.ini passes its sqlalchemy.url)
    5) Local sqlite demo DB
    """

    return (
        configured
        or os.getenv("SHIFTGUARD_STORE_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or fallback
        or "sqlite:///./shift_guard.db"
    )


def _engine_kwargs(url: str, echo: bool = False) -> dict:
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory SQLite needs StaticPool to share state across connections
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    return kwargs


@lru_cache(maxsize=4)
def engine_for_url(url: str, echo: bool = False) -> Engine:
    return create_engine(url, **_engine_kwargs(url, echo))


def sessionmaker_for_engine(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_all(engine: Engine) -> None:
    """Create tables directly (dev/tests); deployments use Alembic."""
    from shift_guard.phi.db import Base
    import shift_guard.phi.models  # noqa: F401
    import shift_guard.store.models  # noqa: F401

    Base.metadata.create_all(engine)


__all__ = ["create_all", "engine_for_url", "resolve_database_url", "sessionmaker_for_engine"]
