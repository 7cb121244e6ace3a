from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from sqlalchemy import DateTime, Engine, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

# Storage URL -> (engine, session factory). The CLI and tests point at
# different sqlite files within one process.
_ENGINES: dict[str, tuple[Engine, sessionmaker]] = {}


class Base(DeclarativeBase):
    pass


class StorageEntry(Base):
    """One key of the client-side key-value storage."""

    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )


def _default_storage_url() -> str:
    # Local-only default, one file per machine.
    return "sqlite+pysqlite:///.local/uc_storage.db"


def storage_url(url: str | None = None) -> str:
    return url or os.getenv("UC_STORAGE_URL") or _default_storage_url()


def _bind(url: str) -> tuple[Engine, sessionmaker]:
    bound = _ENGINES.get(url)
    if bound is None:
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, future=True, connect_args=connect_args)
        bound = (engine, sessionmaker(bind=engine, class_=Session, autoflush=False))
        _ENGINES[url] = bound
    return bound


def get_engine(url: str | None = None) -> Engine:
    """Engine for the storage URL, falling back to UC_STORAGE_URL."""

    return _bind(storage_url(url))[0]


def db_session(url: str | None = None) -> Session:
    return _bind(storage_url(url))[1]()


def init_storage(url: str | None = None) -> None:
    if os.getenv("UC_STORAGE_AUTO_CREATE", "true").strip().lower() not in {"1", "true", "yes", "y"}:
        return

    engine = get_engine(url)
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=engine)
