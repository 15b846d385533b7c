# src/auth/gate.py
import logging

from fastapi import Request, Response

from src.core.errors import PersistenceError, SessionInvalid, Unauthorized
from src.sessions.manager import SessionManager
from .cookie import CookieBinding, InvalidCookie
from .schemas import CookiePayload

logger = logging.getLogger(__name__)


class AuthGate:
    """
    Per-request enforcement of a live server-side session.

    The cookie only tells us which session to look up; the decision is always
    made against the persisted row.
    """

    def __init__(self, session_manager: SessionManager, cookies: CookieBinding):
        self.sessions = session_manager
        self.cookies = cookies

    def authenticate(self, request: Request) -> CookiePayload:
        """
        Raises:
            Unauthorized: No cookie, or the cookie was never marked authenticated.
            SessionInvalid: Cookie unreadable, or its session is absent or expired.
                The exception handler force-expires the cookie.
            PersistenceError: The session store failed; the request is rejected.

        Returns:
            The cookie payload of the authenticated request.
        """
        try:
            payload = self.cookies.read(request)
        except InvalidCookie as e:
            raise SessionInvalid("Invalid session.", detail=str(e)) from e

        if payload is None or not payload.auth:
            raise Unauthorized("Authentication required.")

        if not payload.session_id:
            raise SessionInvalid("Invalid session.", detail="cookie has no session id")

        try:
            valid = self.sessions.validate(payload.session_id)
        except PersistenceError as e:
            logger.error(f"Session validation failed: {e}")
            raise PersistenceError("Server error.", detail=e.detail) from e

        if not valid:
            raise SessionInvalid("Session expired.", detail=f"session {payload.session_id[:8]}... is absent or expired")

        self.sessions.schedule_refresh(payload.session_id)
        return payload

    def logout(self, request: Request, response: Response) -> None:
        """Revokes the cookie's session if there is one, then always clears the cookie."""
        try:
            payload = self.cookies.read(request)
        except InvalidCookie as e:
            logger.info(f"Logout with unreadable cookie: {e}")
            payload = None

        if payload and payload.session_id:
            try:
                self.sessions.revoke(payload.session_id)
            except PersistenceError as e:
                logger.error(f"Failed to delete session from database: {e}")

        self.cookies.clear(response)
