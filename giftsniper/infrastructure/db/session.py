# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from giftsniper.shared.logging import logger


class Base(DeclarativeBase):
    pass


class Database:
    """Engine plus session factory for one database URL."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        connect_args: dict[str, object] = {}
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False, "timeout": 30}
        self.url = url
        self.engine: Engine = create_engine(
            url, echo=echo, pool_pre_ping=True, connect_args=connect_args
        )
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"db:schema ensured tables={sorted(Base.metadata.tables)}")

    def dispose(self) -> None:
        self.engine.dispose()


__all__ = ["Base", "Database"]
