# src/sessions/store.py
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.errors import PersistenceError
from .models import UserSession

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Durable CRUD over session rows.

    A missing row is a normal outcome (None / 0 / no-op), never an error.
    Every database failure is rolled back and raised as PersistenceError.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, session: UserSession) -> UserSession:
        try:
            self.db.add(session)
            self.db.commit()
            self.db.refresh(session)
            return session
        except SQLAlchemyError as e:
            self._fail("create session", e)

    def get_by_id(self, session_id: str) -> Optional[UserSession]:
        try:
            return self.db.query(UserSession).filter(UserSession.id == session_id).first()
        except SQLAlchemyError as e:
            self._fail("load session", e)

    def delete_by_id(self, session_id: str) -> bool:
        try:
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.id == session_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            self._fail("delete session", e)

    def update_expiry(self, session_id: str, new_expires_at: datetime, now: datetime) -> bool:
        """
        Moves expires_at forward for a session that is still live at `now`.

        A value earlier than the stored one is ignored, and a row that has
        already expired is left alone so it cannot come back to life.
        """
        try:
            updated = (
                self.db.query(UserSession)
                .filter(
                    UserSession.id == session_id,
                    UserSession.expires_at > now,
                    UserSession.expires_at < new_expires_at,
                )
                .update({UserSession.expires_at: new_expires_at}, synchronize_session=False)
            )
            self.db.commit()
            return updated > 0
        except SQLAlchemyError as e:
            self._fail("update session expiry", e)

    def delete_expired(self, now: datetime) -> int:
        try:
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.expires_at < now)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted
        except SQLAlchemyError as e:
            self._fail("delete expired sessions", e)

    def count_active_for_user(self, user_id: str, now: datetime) -> int:
        try:
            count = (
                self.db.query(func.count(UserSession.id))
                .filter(UserSession.user_id == user_id, UserSession.expires_at > now)
                .scalar()
            )
            return count or 0
        except SQLAlchemyError as e:
            self._fail("count user sessions", e)

    def _fail(self, action: str, e: SQLAlchemyError):
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        self.db.rollback()
        raise PersistenceError(f"Failed to {action}.", detail=str(e)) from e
