# src/auth/service.py
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from src.core.errors import InvalidInput, PersistenceError
from src.sessions.manager import SessionManager
from src.users.crud import UserDirectory
from .google_token import IdentityVerifier
from .schemas import CookiePayload, LoginResponse, ProfileResponse

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    response: LoginResponse
    cookie: CookiePayload
    cookie_max_age: int


class AuthService:
    """
    Service layer for signing in with a Google ID token and reading the
    signed-in user's profile.
    """

    def __init__(self, db_session: Session, verifier: IdentityVerifier, session_manager: SessionManager):
        """
        Args:
            db_session: Active SQLAlchemy session for the user directory.
            verifier: Checks the Google ID token and returns its claims.
            session_manager: Issues and tracks server-side sessions.
        """
        self.users = UserDirectory(db_session)
        self.verifier = verifier
        self.sessions = session_manager

    def login(self, credential: str, ip: str, user_agent: str) -> LoginResult:
        """
        Verifies the credential, registers or updates the user and opens a session.

        Args:
            credential: The Google ID token from the login request body.
            ip: Client address.
            user_agent: Client user agent.

        Raises:
            InvalidInput: If the credential is missing.
            InvalidToken: If the token does not verify.
            PersistenceError: If the user or session could not be saved.

        Returns:
            The login response body together with the cookie to set.
        """
        if not credential:
            raise InvalidInput("Missing credential.")

        logger.info(f"Received Google ID token, length: {len(credential)} characters")
        claims = self.verifier.verify(credential)

        user_id = self.users.upsert(claims.sub, claims.email, claims.name, claims.picture)
        session_id, expires_at = self.sessions.issue(user_id, ip, user_agent, claims.exp)

        max_age = int((expires_at - self.sessions.now()).total_seconds())

        cookie = CookiePayload(
            user_id=user_id,
            email=claims.email,
            name=claims.name,
            picture=claims.picture,
            auth=True,
            session_id=session_id,
        )
        response = LoginResponse(
            email=claims.email,
            name=claims.name,
            picture=claims.picture,
            isLoggedIn=True,
            expire_session=expires_at,
            activeSessions=self._active_sessions(user_id),
        )
        return LoginResult(response=response, cookie=cookie, cookie_max_age=max_age)

    def profile(self, cookie: CookiePayload) -> ProfileResponse:
        return ProfileResponse(
            email=cookie.email,
            name=cookie.name,
            picture=cookie.picture,
            activeSessions=self._active_sessions(cookie.user_id),
        )

    def _active_sessions(self, user_id: Optional[str]) -> int:
        # Informational only, a failed count must not fail the request
        if not user_id:
            return 0
        try:
            return self.sessions.count_active(user_id)
        except PersistenceError as e:
            logger.warning(f"Could not count active sessions for {user_id}: {e}")
            return 0
