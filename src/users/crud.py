# src/users/crud.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from datetime import datetime
import logging

from src.core.database import utcnow
from src.core.errors import PersistenceError
from .models import User

logger = logging.getLogger(__name__)

def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def upsert_user(
    db: Session, *, subject_id: str, email: str, name: str, picture: str,
    now: Optional[datetime] = None,
) -> User:
    """
    Creates the user on first login, otherwise refreshes the profile fields.

    Only name, picture and last_login are overwritten for an existing user; the
    email stays as first registered.

    Raises:
        PersistenceError: If the lookup or the commit fails.
    """
    now = now or utcnow()
    try:
        user = get_user_by_id(db, subject_id)
        if user:
            logger.info(f"User login: {name} ({email})")
            user.name = name
            user.picture = picture
            user.last_login = now
        else:
            logger.info(f"New user registered: {name} ({email})")
            user = User(
                id=subject_id,
                email=email,
                name=name,
                picture=picture,
                created_at=now,
                last_login=now,
            )
            db.add(user)

        db.commit()
        db.refresh(user)
        return user
    except SQLAlchemyError as e:
        logger.error(f"Database commit failed during upsert for user {email}: {e}", exc_info=True)
        db.rollback()
        raise PersistenceError("Failed to save user.", detail=str(e)) from e


class UserDirectory:
    """Local user directory keyed by the identity provider's subject id."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def upsert(self, subject_id: str, email: str, name: str, picture: str) -> str:
        user = upsert_user(self.db, subject_id=subject_id, email=email, name=name, picture=picture)
        return user.id
