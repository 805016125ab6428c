from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from spade_bridge.config import settings
from spade_bridge.models import Base


def build_engine(url: str) -> Engine:
    connect_args: dict[str, Any] = {}
    if make_url(url).get_backend_name() == "sqlite":
        # Sync routes run on the threadpool, so one connection may cross threads.
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.SPADE_DB_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def init_db(bind: Optional[Engine] = None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def get_session() -> Iterator[Session]:
    with SessionLocal() as session:
        yield session
