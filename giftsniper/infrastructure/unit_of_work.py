# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Database unit of work implementation."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import TracebackType

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from giftsniper.shared.errors import PersistenceError
from giftsniper.shared.logging import logger


class SqlAlchemyUnitOfWork:
    """Commits on clean exit, rolls back otherwise."""

    def __init__(self, session_factory: Callable[[], Session], operation: str = "uow"):
        self._session_factory = session_factory
        self._operation = operation
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        logger.debug(f"uow:opened op={self._operation}")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self.session
        try:
            if exc is not None:
                logger.debug(f"uow:rollback op={self._operation} cause={type(exc).__name__}")
                session.rollback()
            else:
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            self._session = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork session accessed before entering context")
        return self._session


@contextmanager
def unit_of_work_scope(
    factory: Callable[[], Session], operation: str = "uow"
) -> Iterator[Session]:
    """Yield a session; SQLAlchemy failures surface as ``PersistenceError``."""

    try:
        with SqlAlchemyUnitOfWork(factory, operation) as uow:
            yield uow.session
    except SQLAlchemyError as exc:
        logger.error(f"uow:failed op={operation} error={type(exc).__name__}")
        raise PersistenceError(operation, str(exc)) from exc
