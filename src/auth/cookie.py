# src/auth/cookie.py
import logging
from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from pydantic import ValidationError

from .schemas import CookiePayload

logger = logging.getLogger(__name__)


class InvalidCookie(Exception):
    """The session cookie is present but tampered with, too old or unreadable."""


class CookieBinding:
    """Signed client-side container for the session id and cached display fields."""

    def __init__(
        self,
        secret_key: str,
        *,
        cookie_name: str = "user-session",
        max_age_seconds: int = 30 * 24 * 3600,
        secure: bool = False,
    ):
        if not secret_key:
            raise ValueError("secret_key is required to sign session cookies")
        self.cookie_name = cookie_name
        self.max_age_seconds = max_age_seconds
        self.secure = secure
        self._serializer = URLSafeTimedSerializer(secret_key, salt=cookie_name)

    def read(self, request: Request) -> Optional[CookiePayload]:
        """
        Returns the decoded payload, or None when no cookie was sent.

        Raises:
            InvalidCookie: If the cookie fails signature or age checks.
        """
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return None
        try:
            data = self._serializer.loads(raw, max_age=self.max_age_seconds)
            return CookiePayload.model_validate(data)
        except SignatureExpired as e:
            raise InvalidCookie(f"cookie signature expired: {e}") from e
        except BadData as e:
            raise InvalidCookie(f"bad cookie signature: {e}") from e
        except ValidationError as e:
            raise InvalidCookie(f"unreadable cookie payload: {e}") from e

    def write(self, response: Response, payload: CookiePayload, max_age: Optional[int] = None) -> None:
        if not max_age or max_age <= 0:
            max_age = self.max_age_seconds
        response.set_cookie(
            self.cookie_name,
            self._serializer.dumps(payload.model_dump()),
            max_age=max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )

    def clear(self, response: Response) -> None:
        """Force-expires the cookie on the client."""
        response.set_cookie(
            self.cookie_name,
            "",
            max_age=-1,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )
