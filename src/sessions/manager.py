# src/sessions/manager.py
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from src.core.database import as_utc, utcnow
from src.core.errors import PersistenceError
from src.core.tasks import TaskRunner
from .models import UserSession
from .store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=30)


def _short(session_id: str) -> str:
    return f"{session_id[:8]}..."


class SessionManager:
    """
    Session lifecycle on top of SessionStore.

    A session id is in one of three states: active (row exists and expires_at
    is in the future), expired (row exists but expires_at has passed) or absent
    (no row). Expired rows are treated exactly like absent ones and are removed
    lazily on validation or by the sweep that follows every login.

    Every operation opens its own short-lived database session from
    `session_factory`, so background work never shares the request's session.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        task_runner: TaskRunner,
        *,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        use_token_expiry: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._tasks = task_runner
        self.ttl = ttl
        self.use_token_expiry = use_token_expiry
        self._now = clock

    def now(self) -> datetime:
        return self._now()

    @contextmanager
    def _store(self) -> Iterator[SessionStore]:
        db: Session = self._session_factory()
        try:
            yield SessionStore(db)
        finally:
            db.close()

    def _initial_expiry(self, now: datetime, token_expiry_hint: Optional[float]) -> datetime:
        expires_at = now + self.ttl
        if self.use_token_expiry and token_expiry_hint:
            token_expiry = datetime.fromtimestamp(token_expiry_hint, tz=timezone.utc)
            if token_expiry > now:
                expires_at = token_expiry
        return expires_at

    def issue(
        self, user_id: str, ip: str, user_agent: str, token_expiry_hint: Optional[float] = None
    ) -> tuple[str, datetime]:
        """
        Persists a new session for the user and schedules a sweep of expired rows.

        Args:
            user_id: Id of an existing user.
            ip: Client address recorded with the session.
            user_agent: Client user agent recorded with the session.
            token_expiry_hint: The identity token's `exp`. Ignored unless the
                token-expiry policy is enabled.

        Raises:
            PersistenceError: If the row could not be written.

        Returns:
            The new session id and its expiry.
        """
        now = self._now()
        expires_at = self._initial_expiry(now, token_expiry_hint)
        session_id = str(uuid.uuid4())

        with self._store() as store:
            store.create(UserSession(
                id=session_id,
                user_id=user_id,
                expires_at=expires_at,
                ip=ip,
                user_agent=user_agent,
                created_at=now,
            ))
        logger.info(f"Issued session {_short(session_id)} for user {user_id}, expires at {expires_at.isoformat()}")

        self._tasks.submit("sweep-expired-sessions", self.sweep_expired)
        return session_id, expires_at

    def validate(self, session_id: str) -> bool:
        """
        True only while the persisted session's expiry lies in the future.

        An expired row is deleted on the way out; if that delete fails the
        answer is still False, since expiry is decided by the timestamp alone.

        Raises:
            PersistenceError: If the session could not be read.
        """
        if not session_id:
            return False

        now = self._now()
        with self._store() as store:
            session = store.get_by_id(session_id)
            if session is None:
                return False

            if as_utc(session.expires_at) <= now:
                logger.info(f"Session {_short(session_id)} expired, removing it")
                try:
                    store.delete_by_id(session_id)
                except PersistenceError as e:
                    logger.warning(f"Failed to delete expired session {_short(session_id)}: {e}")
                return False

        return True

    def refresh(self, session_id: str) -> None:
        """Pushes the expiry to now + TTL. Never moves it backwards and never revives an expired session."""
        now = self._now()
        with self._store() as store:
            store.update_expiry(session_id, now + self.ttl, now)

    def schedule_refresh(self, session_id: str) -> None:
        self._tasks.submit("refresh-session", self.refresh, session_id)

    def revoke(self, session_id: str) -> None:
        with self._store() as store:
            if store.delete_by_id(session_id):
                logger.info(f"Revoked session {_short(session_id)}")

    def count_active(self, user_id: str) -> int:
        with self._store() as store:
            return store.count_active_for_user(user_id, self._now())

    def sweep_expired(self) -> int:
        with self._store() as store:
            deleted = store.delete_expired(self._now())
        if deleted:
            logger.info(f"Swept {deleted} expired session(s)")
        return deleted
