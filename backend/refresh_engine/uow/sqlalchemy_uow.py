"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from refresh_engine.core.extensions import db
from refresh_engine.repositories import RefreshTokenRepository
from refresh_engine.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The session starts lazily on the first statement; exit handling lives in
    :class:`~refresh_engine.uow.base.UnitOfWork`.
    """

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the Unit of Work with a shared SQLAlchemy session.

        :param session: Explicit session; defaults to the Flask-scoped one.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self.session: Session = session if session is not None else db.session
        self.refresh_tokens = RefreshTokenRepository(session=self.session)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
